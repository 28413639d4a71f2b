"""
Route handler for streaming chat turns.
Handles the /api/chat endpoint: chat resolution, then the tool-calling stream.
"""
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
import ollama
from config import Config
from models.api_models import ChatRequest
from models.chat_models import ChatContext
from services.chat_service import ChatService
from services.chat_store import ChatNotFoundError, ChatStore
from services.stream_service import StreamService
from utils.database import DatabaseManager
from utils.logger import app_logger

router = APIRouter()


@router.post("/api/chat")
async def chat_stream(http_request: Request, request: ChatRequest):
    """
    Streaming chat endpoint with web search and page scraping tools.
    """
    user_id = http_request.state.user_id

    if not request.messages:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "No messages provided", "error": "bad_request"},
        )

    try:
        with DatabaseManager.session() as session:
            resolution = ChatService.resolve_chat(ChatStore(session), request, user_id)
    except ChatNotFoundError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Chat not found or unauthorized", "error": "not_found"},
        )

    app_logger.info(
        f"Chat turn: chat={resolution.chat_id} user={user_id} "
        f"new={resolution.is_new_chat} messages={len(request.messages)}"
    )

    system_prompt = ChatService.get_system_prompt()
    context = ChatContext(
        request=request,
        client=ollama.AsyncClient(host=Config.OLLAMA_HOST),
        user_id=user_id,
        chat=resolution,
        messages=ChatService.prepare_messages(request.messages, system_prompt),
        system_prompt=system_prompt
    )

    return StreamingResponse(
        StreamService.stream_chat_turn(context),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )
