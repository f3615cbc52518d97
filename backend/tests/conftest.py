"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally pick up a real bridge or real keys
os.environ.setdefault("MIDNIGHT_BRIDGE_BASE_URI", "http://bridge.test")
os.environ.setdefault("MIDNIGHT_BRIDGE_API_KEY", "test-api-key")
os.environ.setdefault("MIDNIGHT_BRIDGE_SIGNING_ENABLED", "false")
os.environ.setdefault("MIDNIGHT_BRIDGE_SIGNING_KEY", "test-signing-key")
