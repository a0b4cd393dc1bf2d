"""auth/ -- Credentials, tokens, user storage and the authorization gate.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/; api/ imports from auth/, and the
lifespan in api/main.py passes configuration values in.
"""
