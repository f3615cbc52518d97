"""Infrastructure Layer — the HTTP transport, bridge client and logging setup.

Invariants:
    - All network calls go through the transport pipeline (retry, signing, logging)
    - Network conditions surface as Failure values, never as raised exceptions

Design Decisions:
    - Resilient wrapper over a raw httpx.AsyncClient (ADR: single responsibility)
"""
