"""Infrastructure Layer — database sessions, cache backends and logging.

Invariants:
    - Infrastructure never holds invitation rules; it stores, caches and logs
    - Backend failures are mapped to typed errors (database) or logged and absorbed (cache)
"""
