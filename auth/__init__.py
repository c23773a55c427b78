"""auth/ -- Credential lifecycle and access gate for Freightgate.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or pricing/.
api/ imports from auth/, not the other way around.
"""
