"""Outbox module."""

from .composer import Composer, IMessageSink

__all__ = ["Composer", "IMessageSink"]
