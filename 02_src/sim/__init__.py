"""Scripted two-party workroom simulation."""

from .sim import Sim

__all__ = ["Sim"]
