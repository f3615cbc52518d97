"""Pydantic Schemas — request/response payloads for bridge endpoints.

Invariants:
    - Schemas validate at system boundary (outgoing requests, bridge responses)
    - Known fields typed; open-ended fields (arguments, options, inputs) stay dict[str, Any]

Design Decisions:
    - Separate from core: schemas are wire contracts, core is protocol logic (ADR: DDD boundary)
"""
