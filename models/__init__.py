"""
Models package exports.
"""
from models.api_models import (
    Message,
    ChatRequest,
    TextPart,
    ToolInvocation,
    ToolInvocationPart,
    ChatSummary,
    ChatDetail,
)
from models.chat_models import ChatContext, ChatResolution, FlowAction, FlowStep

__all__ = [
    'Message',
    'ChatRequest',
    'TextPart',
    'ToolInvocation',
    'ToolInvocationPart',
    'ChatSummary',
    'ChatDetail',
    'ChatContext',
    'ChatResolution',
    'FlowAction',
    'FlowStep'
]
