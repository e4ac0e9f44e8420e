# API package

from api.app import GatewayAPI, status_for
from api.models import (
    ErrorResponse,
    SubscribeMessage,
    ToolCallRequest,
    ToolCallResponse,
    ToolListResponse,
)
from api.streaming import ExecutionSubscriptions, InvalidMessageError, parse_subscription

__all__ = [
    "ErrorResponse",
    "ExecutionSubscriptions",
    "GatewayAPI",
    "InvalidMessageError",
    "SubscribeMessage",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolListResponse",
    "parse_subscription",
    "status_for",
]
