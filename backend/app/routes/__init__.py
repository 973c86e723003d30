# Routes package init
"""
PlaceShare Backend - API Routes Package
=========================================

Route Inventory:
    - places.py:   GET    /api/places/{pid}
                   GET    /api/places/user/{uid}
                   POST   /api/places            (auth)
                   PATCH  /api/places/{pid}      (auth)
                   DELETE /api/places/{pid}      (auth)
    - users.py:    GET    /api/users
                   POST   /api/users/signup
                   POST   /api/users/login
    - uploads.py:  GET    /uploads/{path}
    - health.py:   GET    /health

Routes are thin: extract request data, call a service, shape the response.
"""
