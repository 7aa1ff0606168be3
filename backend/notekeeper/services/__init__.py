# Services package init
"""
NoteKeeper Backend — Services Layer
=====================================

Service Inventory:
    - CredentialStore: signup (bcrypt hashing, username uniqueness) and
      password verification
    - TokenService: signs and verifies bearer tokens (JWT)
    - NoteRepository: owner-scoped note create / list / update / delete

CredentialStore and NoteRepository are built per request around that
request's AsyncSession. TokenService is built once by the app factory.
"""
