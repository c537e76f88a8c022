# Middleware package init
"""
Posts API — Middleware Package
===============================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: sets the correlation ID before anything logs
    2. Logging: times the request and writes the access line with that ID
    3. CORS: FastAPI's CORSMiddleware, answers preflight requests from the frontend
"""
