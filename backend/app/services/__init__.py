"""
Blog Backend — Services Layer
===============================

Business logic between the routes (HTTP) and the database (persistence).

Service Inventory:
    - UserService: registration and login
    - PostService: post CRUD with ownership checks
    - FileService: image validation and storage for post attachments

Each service is stateless and exposed as a module-level singleton; the
database session is passed into every call.
"""
