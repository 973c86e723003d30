# Middleware package init
"""
PlaceShare Backend - Middleware Package
=========================================

Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation ID for logging and error responses
    2. Logging: access line with status and duration
    3. CORS: FastAPI's CORSMiddleware answers preflight OPTIONS requests
"""
