"""
Pydantic data models for API requests and responses.
Field aliases follow the camelCase wire format used by the chat UI.
"""
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class TextPart(BaseModel):
    """Plain text segment of a message."""
    type: Literal["text"] = "text"
    text: str


class ToolInvocation(BaseModel):
    """A tool call made by the model, with its result once executed."""
    model_config = ConfigDict(populate_by_name=True)

    state: Literal["partial-call", "call", "result"]
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    step: Optional[int] = None


class ToolInvocationPart(BaseModel):
    """Message part wrapping a tool invocation record."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["tool-invocation"] = "tool-invocation"
    tool_invocation: ToolInvocation = Field(alias="toolInvocation")


MessagePart = Annotated[Union[TextPart, ToolInvocationPart], Field(discriminator="type")]


class Message(BaseModel):
    """Chat message model."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    role: str  # "user", "assistant", "system" or "tool"
    content: str = ""
    parts: Optional[List[MessagePart]] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    def get_parts(self) -> list:
        """Return the message parts, falling back to a single text part built from content."""
        if self.parts:
            return list(self.parts)
        if self.content:
            return [TextPart(text=self.content)]
        return []

    def text(self) -> str:
        """Concatenated text of all text parts (or the raw content)."""
        texts = [part.text for part in self.get_parts() if isinstance(part, TextPart)]
        return "".join(texts)


class ChatRequest(BaseModel):
    """Chat request: the full client-side message list and an optional existing chat id."""
    model_config = ConfigDict(populate_by_name=True)

    messages: List[Message] = Field(default_factory=list)
    chat_id: Optional[str] = Field(None, alias="chatId")


class ChatSummary(BaseModel):
    """Chat listing entry."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    created_at: datetime = Field(alias="createdAt")


class ChatDetail(ChatSummary):
    """A chat with its full transcript."""
    messages: List[Message] = Field(default_factory=list)


def dump_part(part: BaseModel) -> dict:
    """Serialize a message part to its wire/storage JSON form."""
    return part.model_dump(by_alias=True, exclude_none=True, mode="json")
