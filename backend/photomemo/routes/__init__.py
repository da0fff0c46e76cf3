"""
PhotoMemo Backend: API Routes Package
=====================================

Route Inventory:
    - auth.py:     POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - posts.py:    /api/posts (create, list, my, get, update, delete)
    - uploads.py:  POST /api/uploads
    - health.py:   GET /, GET /health

Routes stay thin: extract request data, call a service, shape the response.
"""
