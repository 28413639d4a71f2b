"""
Chat service containing core chat processing logic.
Handles chat resolution, message conversion and the tool-calling loop.
"""
import json
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Iterator, List

import anyio

from config import Config
from models.api_models import ChatRequest, Message, TextPart, ToolInvocation, ToolInvocationPart
from models.chat_models import ChatContext, ChatResolution, FlowAction, FlowStep
from services.chat_store import ChatNotFoundError, ChatStore, generate_id
from services.tools import TOOL_DEFINITIONS, ToolService
from utils.constants import SYSTEM_PROMPT, FinishReason
from utils.logger import app_logger


class ChatService:
    """Service for handling chat logic."""

    @staticmethod
    def derive_title(messages: List[Message]) -> str:
        """Title from the first user message, truncated to Config.TITLE_MAX_LENGTH characters."""
        first_user = next((m for m in messages if m.role == "user"), None)
        text = " ".join(first_user.text().split()) if first_user else ""
        if not text:
            return Config.DEFAULT_CHAT_TITLE
        if len(text) > Config.TITLE_MAX_LENGTH:
            return text[:Config.TITLE_MAX_LENGTH].rstrip() + "..."
        return text

    @staticmethod
    def resolve_chat(store: ChatStore, request: ChatRequest, user_id: str) -> ChatResolution:
        """
        Find the chat for this turn, creating it when the request carries no chat id.

        Raises:
            ChatNotFoundError: If the given chat id is unknown or owned by someone else
        """
        if not request.chat_id:
            chat_id = generate_id()
            chat = store.create_chat(
                chat_id=chat_id,
                user_id=user_id,
                title=ChatService.derive_title(request.messages),
                messages=request.messages,
            )
            return ChatResolution(chat_id=chat_id, is_new_chat=True, version=chat.version)

        chat = store.find_chat(request.chat_id)
        if chat is None or chat.user_id != user_id:
            app_logger.warning(f"Chat {request.chat_id} not found for user {user_id}")
            raise ChatNotFoundError(request.chat_id)

        return ChatResolution(chat_id=chat.id, is_new_chat=False, version=chat.version)

    @staticmethod
    def get_system_prompt() -> str:
        return SYSTEM_PROMPT.format(current_date=datetime.now().strftime("%Y-%m-%d"))

    @staticmethod
    def prepare_messages(messages: List[Message], system_prompt: str) -> list:
        """Prepare a messages list for the model: system prompt followed by the converted history."""
        return [{"role": "system", "content": system_prompt}] + ChatService.to_model_messages(messages)

    @staticmethod
    def to_model_messages(messages: List[Message]) -> list:
        """
        Convert UI messages to model messages.

        Assistant tool invocations with results are replayed as an assistant
        message carrying tool_calls followed by one tool message per result.
        Invocations that never got a result are dropped.
        """
        model_messages = []
        for message in messages:
            if message.role == "assistant":
                model_messages.extend(ChatService._assistant_to_model_messages(message))
            elif message.role in ("user", "system", "tool"):
                model_messages.append({"role": message.role, "content": message.text()})
        return model_messages

    @staticmethod
    def _assistant_to_model_messages(message: Message) -> list:
        converted = []
        text = ""
        invocations: List[ToolInvocation] = []

        for part in message.get_parts():
            if isinstance(part, TextPart):
                if invocations:
                    converted.extend(ChatService._tool_exchange(text, invocations))
                    text, invocations = "", []
                text += part.text
            elif part.tool_invocation.state == "result":
                invocations.append(part.tool_invocation)

        if invocations:
            converted.extend(ChatService._tool_exchange(text, invocations))
        elif text:
            converted.append({"role": "assistant", "content": text})
        return converted

    @staticmethod
    def _tool_exchange(text: str, invocations: List[ToolInvocation]) -> list:
        exchange = [{
            "role": "assistant",
            "content": text,
            "tool_calls": [
                {"function": {"name": inv.tool_name, "arguments": inv.args}}
                for inv in invocations
            ],
        }]
        for inv in invocations:
            exchange.append({
                "role": "tool",
                "content": ChatService._serialize_tool_result(inv.result),
                "tool_name": inv.tool_name,
            })
        return exchange

    @staticmethod
    def append_response_messages(messages: List[Message], response_message: Message) -> List[Message]:
        """
        Merge the turn's response into the incoming message list.

        Every message gets an id. The response parts become a new assistant
        message, unless the list already ends with an assistant message, in
        which case they are appended to it.

        Returns:
            A new list in request order followed by response order
        """
        merged = []
        for message in messages:
            copy = message.model_copy(deep=True)
            if not copy.id:
                copy.id = generate_id()
            merged.append(copy)

        if merged and merged[-1].role == "assistant":
            last = merged[-1]
            last.parts = last.get_parts() + list(response_message.parts or [])
            last.content = last.text()
        else:
            merged.append(response_message)

        return merged

    @staticmethod
    async def orchestrate_chat_flow(context: ChatContext) -> AsyncIterator[FlowStep]:
        """
        Run the model with the search and scrape tools until it answers.

        Each step streams one model call; text deltas are yielded as they
        arrive. If the model requested tools, every call is executed in
        order, its result appended to the conversation, and the next step
        begins. The loop ends when a step makes no tool calls or after
        Config.MAX_STEPS steps, then yields FINISH with the assistant
        message assembled from all steps.

        Raises:
            TimeoutError: If the turn runs past Config.MAX_DURATION_SECONDS,
                including while a model stream or tool call is still pending
        """
        deadline = time.monotonic() + Config.MAX_DURATION_SECONDS
        parts: list = []
        texts: List[str] = []
        finish_reason = FinishReason.STOP
        step_number = 0

        for step_number in range(1, Config.MAX_STEPS + 1):
            if time.monotonic() > deadline:
                raise ChatService._turn_timeout()

            call_num = context.next_call_number()
            app_logger.info(f"LLM Call #{call_num}: step {step_number}/{Config.MAX_STEPS}")

            step_text = ""
            tool_calls = []

            with ChatService._within_deadline(deadline):
                stream = await context.client.chat(
                    model=context.model_name,
                    messages=context.messages,
                    tools=TOOL_DEFINITIONS,
                    stream=True
                )
            chunks = aiter(stream)
            while True:
                # The scope must close before yielding to the consumer
                with ChatService._within_deadline(deadline):
                    try:
                        chunk = await anext(chunks)
                    except StopAsyncIteration:
                        break
                message = chunk["message"]
                token = message.get("content") or ""
                if token:
                    step_text += token
                    yield FlowStep(action=FlowAction.TEXT_DELTA, step=step_number, content=token)
                tool_calls.extend(message.get("tool_calls") or [])

            app_logger.info(
                f"LLM Call #{call_num} completed: {len(step_text)} characters, {len(tool_calls)} tool calls"
            )

            if step_text:
                texts.append(step_text)
                parts.append(TextPart(text=step_text))

            if not tool_calls:
                break

            requested = [
                (call["function"]["name"], ToolService.parse_arguments(call["function"]["arguments"]))
                for call in tool_calls
            ]
            context.messages.append({
                "role": "assistant",
                "content": step_text,
                "tool_calls": [{"function": {"name": name, "arguments": args}} for name, args in requested],
            })

            for tool_name, args in requested:
                invocation = ToolInvocation(
                    state="call",
                    tool_call_id=f"call_{generate_id()[:16]}",
                    tool_name=tool_name,
                    args=args,
                    step=step_number,
                )
                yield FlowStep(action=FlowAction.TOOL_CALL, step=step_number, tool_invocation=invocation)

                with ChatService._within_deadline(deadline):
                    result = await ToolService.execute(tool_name, args)
                invocation = invocation.model_copy(update={"state": "result", "result": result})
                parts.append(ToolInvocationPart(tool_invocation=invocation))
                context.messages.append({
                    "role": "tool",
                    "content": ChatService._serialize_tool_result(result),
                    "tool_name": tool_name,
                })
                yield FlowStep(action=FlowAction.TOOL_RESULT, step=step_number, tool_invocation=invocation)
        else:
            finish_reason = FinishReason.TOOL_CALLS
            app_logger.warning(f"Step budget of {Config.MAX_STEPS} exhausted for chat {context.chat_id}")

        response_message = Message(
            id=generate_id(),
            role="assistant",
            content="".join(texts),
            parts=parts,
            created_at=datetime.now(timezone.utc),
        )
        yield FlowStep(
            action=FlowAction.FINISH,
            step=step_number,
            response_message=response_message,
            finish_reason=finish_reason,
        )

    @staticmethod
    def _turn_timeout() -> TimeoutError:
        app_logger.warning(f"Chat turn exceeded {Config.MAX_DURATION_SECONDS:g}s, aborting")
        return TimeoutError(f"Chat turn exceeded {Config.MAX_DURATION_SECONDS:g}s")

    @staticmethod
    @contextmanager
    def _within_deadline(deadline: float) -> Iterator[None]:
        """Cancel the awaited call once the turn deadline passes."""
        try:
            with anyio.fail_after(max(deadline - time.monotonic(), 0)):
                yield
        except TimeoutError:
            raise ChatService._turn_timeout() from None

    @staticmethod
    def _serialize_tool_result(result: Any) -> str:
        return json.dumps(result, ensure_ascii=False)
