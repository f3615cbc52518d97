"""Core Layer — pure protocol logic, no IO, no DB.

Invariants:
    - No module in core/ imports from infrastructure/ or api/
    - Signing, retry decisions and response mapping are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
