"""auth/ -- Credential validation and session lifecycle for SessionAuth.

Layer rule: auth/ imports only stdlib + third-party libraries + core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
