"""storage/ -- Asset storage backends and client-name resolution.

Layer rule: storage/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, auth/, or access/.
"""
