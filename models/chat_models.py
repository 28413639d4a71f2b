"""
Data models for chat processing.
Contains context objects and flow control structures for the tool-calling loop.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import ollama
from config import Config
from models.api_models import ChatRequest, Message, ToolInvocation


@dataclass
class ChatResolution:
    """Outcome of resolving the chat a turn belongs to."""
    chat_id: str
    is_new_chat: bool
    version: int


@dataclass
class ChatContext:
    """
    Context object containing all state for one chat turn.
    Provides centralized access to request-scoped data, eliminating parameter chaining.
    """
    request: ChatRequest
    client: ollama.AsyncClient
    user_id: str
    chat: ChatResolution
    messages: list
    system_prompt: str
    call_count: int = 0

    @property
    def model_name(self) -> str:
        """Model used for every call in this turn."""
        return Config.MODEL_NAME

    @property
    def chat_id(self) -> str:
        return self.chat.chat_id

    @property
    def is_new_chat(self) -> bool:
        return self.chat.is_new_chat

    def next_call_number(self) -> int:
        """Increment and return the next LLM call number."""
        self.call_count += 1
        return self.call_count


class FlowAction(Enum):
    """Types of events produced by the tool-calling loop."""
    TEXT_DELTA = "text_delta"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    FINISH = "finish"


@dataclass
class FlowStep:
    """Represents one event of the tool-calling loop."""
    action: FlowAction
    step: Optional[int] = None
    content: Optional[str] = None
    tool_invocation: Optional[ToolInvocation] = None
    response_message: Optional[Message] = None
    finish_reason: Optional[str] = None

    def tool_payload(self) -> dict[str, Any]:
        """SSE payload describing the tool invocation of this step."""
        invocation = self.tool_invocation
        payload = {
            "toolCallId": invocation.tool_call_id,
            "toolName": invocation.tool_name,
            "step": self.step,
        }
        if self.action == FlowAction.TOOL_RESULT:
            payload["result"] = invocation.result
        else:
            payload["args"] = invocation.args
        return payload
