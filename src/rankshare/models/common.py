"""Helpers shared by model definitions."""

import uuid


def new_id() -> str:
    """Return a new opaque string identifier."""
    return uuid.uuid4().hex
