"""Route Modules — one file per bridge capability.

Invariants:
    - Each module defines its own APIRouter with tags
    - Routes return canned, deterministic JSON; no blockchain access

Design Decisions:
    - Explicit registration in main.py over auto-discovery (ADR: no convention-over-config)
"""
