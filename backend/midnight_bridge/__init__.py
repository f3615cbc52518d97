"""Midnight Bridge Package — signed transport to the Midnight bridge service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Only __version__ lives here: explicit imports only, no star exports (ADR: no convention-over-config)
"""

__version__ = "1.0.0"
