"""audit/ -- Append-only operation log for CushionTrack.

Layer rule: audit/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, auth/, or catalog/ -- acting users are
referenced by integer id only.
"""
