"""
Blog Backend — API Routes Package
===================================

Route Inventory:
    - auth.py:    POST /api/register, POST /api/login
    - posts.py:   GET/POST /api/posts, GET/PUT/DELETE /api/posts/{id},
                  GET /api/my-posts
    - health.py:  GET /health, GET /

Routes stay thin: they extract request data, resolve the caller, call a
service and return its result. Errors are raised as exceptions and turned
into JSON by the handlers registered in main.py.
"""
