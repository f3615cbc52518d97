"""API Layer — reference bridge server: signature guard, routes and error handlers.

Invariants:
    - Routes registered explicitly in main.create_app (no auto-discovery)
    - Every routed request passes the signature guard first when signing is enabled
    - All endpoints return deterministic JSON; errors use the flat {error, status_code, timestamp} body

Design Decisions:
    - Test double only, never deployed: proves client and signer interoperate over the wire
"""
