"""
Streaming service for chat turns.
Turns tool-loop events into SSE, persists the transcript on completion and reports errors.
"""
import json
from typing import AsyncIterator

from models.chat_models import ChatContext, FlowAction
from services.chat_service import ChatService
from services.chat_store import ChatStore, ChatVersionConflictError
from utils.constants import (
    CONFLICT_ERROR_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    NEW_CHAT_CREATED,
    StreamEvent,
)
from utils.database import DatabaseManager
from utils.logger import app_logger


class StreamService:
    """Service for handling streaming chat operations."""

    @staticmethod
    def send_sse_event(event_type: str, data: dict) -> str:
        """Format data as Server-Sent Events (SSE) format."""
        return f"event: {event_type}\ndata: {json.dumps(data, separators=(',', ':'))}\n\n"

    @staticmethod
    async def stream_chat_turn(context: ChatContext) -> AsyncIterator[str]:
        """
        Stream one chat turn as SSE events.

        A new chat is announced before any model output. Text deltas and tool
        calls and results are forwarded as they happen. When the loop finishes, the
        merged transcript replaces the stored one and a done event closes the
        stream. Failures end the stream with a single error event; nothing is
        persisted for a failed turn.

        Yields:
            SSE-formatted event strings
        """
        try:
            if context.is_new_chat:
                yield StreamService.send_sse_event(StreamEvent.DATA, {
                    "type": NEW_CHAT_CREATED,
                    "chatId": context.chat_id,
                })

            async for step in ChatService.orchestrate_chat_flow(context):
                if step.action == FlowAction.TEXT_DELTA:
                    yield StreamService.send_sse_event(StreamEvent.TOKEN, {"content": step.content})

                elif step.action == FlowAction.TOOL_CALL:
                    yield StreamService.send_sse_event(StreamEvent.TOOL_CALL, step.tool_payload())

                elif step.action == FlowAction.TOOL_RESULT:
                    yield StreamService.send_sse_event(StreamEvent.TOOL_RESULT, step.tool_payload())

                elif step.action == FlowAction.FINISH:
                    merged = ChatService.append_response_messages(
                        context.request.messages, step.response_message
                    )
                    with DatabaseManager.session() as session:
                        ChatStore(session).replace_messages(
                            context.chat_id, merged, expected_version=context.chat.version
                        )

                    yield StreamService.send_sse_event(StreamEvent.DONE, {
                        "chatId": context.chat_id,
                        "finishReason": step.finish_reason,
                        "steps": step.step,
                        "messageCount": len(merged),
                    })

        except ChatVersionConflictError as e:
            app_logger.warning(f"Concurrent update rejected: {str(e)}")
            yield StreamService.send_sse_event(StreamEvent.ERROR, {
                "message": CONFLICT_ERROR_MESSAGE,
                "type": "conflict",
            })
        except Exception as e:
            app_logger.error(f"Streaming chat error: {str(e)}")
            yield StreamService.send_sse_event(StreamEvent.ERROR, {"message": GENERIC_ERROR_MESSAGE})
