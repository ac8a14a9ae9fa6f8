"""Delivery module."""

from .channel import ChannelState, DeliveryChannelManager
from .message_list import MessageList

__all__ = ["ChannelState", "DeliveryChannelManager", "MessageList"]
