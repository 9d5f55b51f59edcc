"""
Blog Backend — Middleware Package
===================================

Middleware Chain (request direction):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and any error body carry
    the same correlation ID.

Authentication is not middleware: only some routes need it, so it is the
get_current_identity dependency in app/auth.py.
"""
