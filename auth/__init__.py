"""auth/ -- Credential and token handling for AssetGate.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, storage/, or access/.
access/ and api/ import from auth/, not the other way around.
"""
