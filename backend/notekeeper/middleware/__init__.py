# Middleware package init
"""
NoteKeeper Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to requests.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Router
                                                            │
                              protected routes only → [require_identity]

    - request_id.py: correlation ID in a ContextVar and X-Request-ID header
    - logging.py:    access log with status and duration
    - auth.py:       bearer-token identity guard (a router dependency, so it
                     applies to /notes and not to /signup, /login, /health)
"""
