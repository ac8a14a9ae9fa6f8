"""Presence module."""

from .reactions import ReactionBoard
from .typing_signal import TypingIndicator, TypingSignal

__all__ = ["ReactionBoard", "TypingIndicator", "TypingSignal"]
