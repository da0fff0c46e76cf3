"""
PhotoMemo Backend: Middleware Package
=====================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: generate or accept a correlation ID for logs and responses
    2. Logging:    method, path, status and duration tagged with that ID
    3. GZip / CORS: FastAPI's stock middleware (CORS allows credentials for the cookie)
"""
