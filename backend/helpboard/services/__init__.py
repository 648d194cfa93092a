"""Services Layer — the help-post lifecycle engine.

Invariants:
    - Services orchestrate IO (store, observer) around pure core logic
    - Services never import from api/

Design Decisions:
    - One engine class per aggregate; routes stay thin and delegate here
"""
