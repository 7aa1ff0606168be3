# Routes package init
"""
NoteKeeper Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:    POST /signup, POST /login                 (public)
    - notes.py:   POST/GET /notes, PUT/DELETE /notes/{id}   (bearer token)
    - health.py:  GET /health                               (public)

Routes stay thin: parse input, call a service, shape the response.
"""
