# Middleware package init
"""
OpsLedger Backend — Middleware Package
=======================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - rate_limit.py:  per-IP sliding window, 429 before any other work
    - request_id.py:  X-Request-ID correlation ID (ContextVar)
    - logging.py:     one access-log line per request, level by status

Starlette runs middleware in reverse order of `add_middleware`, so
main.create_app() adds them last-to-first.
"""
