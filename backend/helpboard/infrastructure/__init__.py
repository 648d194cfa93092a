"""Infrastructure Layer — IO adapters: database sessions, stores, identity, logging.

Invariants:
    - Implements the Protocols declared in core/repository_protocols.py
    - Maps third-party exceptions to core/errors.py types at the boundary
"""
