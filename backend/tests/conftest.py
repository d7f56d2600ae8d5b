"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real mirror node or signing relay
os.environ.setdefault("MIRROR_NODE_URL", "http://mirror.test")
os.environ.setdefault("CANVAS_ACCOUNT_ID", "0.0.12345")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.pop("WALLET_RELAY_URL", None)
