"""
External system integrations (TMDb, OMDb, Jikan, page fetchers).

New external metadata clients should live under this namespace so they remain
decoupled from app entrypoints (`api/`) and pipeline scripts (`scripts/`).
"""
