"""Collaborator clients."""

from .http import USER_HEADER, WorkroomApiClient
from .protocols import (
    EventHandler,
    IAuthClient,
    IFinaliseClient,
    IMessageHistoryClient,
    IMessageWriteClient,
    IPushChannel,
    IRoomMetaClient,
    IWorkroomApi,
)
from .push import DisabledPushChannel, PushChannelBase, WebSocketPushChannel

__all__ = [
    "USER_HEADER",
    "WorkroomApiClient",
    "EventHandler",
    "IAuthClient",
    "IFinaliseClient",
    "IMessageHistoryClient",
    "IMessageWriteClient",
    "IPushChannel",
    "IRoomMetaClient",
    "IWorkroomApi",
    "DisabledPushChannel",
    "PushChannelBase",
    "WebSocketPushChannel",
]
