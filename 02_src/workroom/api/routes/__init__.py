"""API routes."""

from . import auth, control, push, workrooms

__all__ = ["auth", "control", "push", "workrooms"]
