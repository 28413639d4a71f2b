import pytest

TEST_API_KEYS = {"test-key": "user-1", "other-key": "user-2"}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def database():
    """Fresh in-memory database for every test."""
    from utils.database import DatabaseManager

    engine = DatabaseManager.configure("sqlite://")
    yield engine
    DatabaseManager.dispose()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Replace the shared redis client with an in-memory double."""
    from utils.cache import RedisManager
    from tests.fixtures.mock_clients import FakeRedis

    client = FakeRedis()
    monkeypatch.setattr(RedisManager, "_client", client)
    return client


@pytest.fixture
def ollama_client_builder():
    from tests.fixtures.mock_clients import OllamaClientBuilder
    return OllamaClientBuilder()


@pytest.fixture
def chat_store():
    """ChatStore bound to a session that stays open for the test."""
    from services.chat_store import ChatStore
    from utils.database import DatabaseManager

    with DatabaseManager.session() as session:
        yield ChatStore(session)


@pytest.fixture
def chat_context_factory():
    """Build a ChatContext for a new chat around the given client and messages."""
    from models.api_models import ChatRequest
    from models.chat_models import ChatContext, ChatResolution
    from services.chat_service import ChatService

    def factory(client, messages=None, chat=None):
        request = ChatRequest(messages=messages or [{"role": "user", "content": "Hello"}])
        return ChatContext(
            request=request,
            client=client,
            user_id="user-1",
            chat=chat or ChatResolution(chat_id="chat-1", is_new_chat=True, version=0),
            messages=ChatService.prepare_messages(request.messages, "sys"),
            system_prompt="sys"
        )

    return factory


@pytest.fixture
def auth_headers():
    """Authentication headers for API requests."""
    return {"X-API-Key": "test-key"}


@pytest.fixture
def other_user_headers():
    return {"X-API-Key": "other-key"}


@pytest.fixture
def use_ollama_client(monkeypatch):
    """Make the chat route use the given mock client."""
    def install(client):
        monkeypatch.setattr("routes.chat_stream.ollama.AsyncClient", lambda **kwargs: client)
        return client
    return install


@pytest.fixture
def configured_app(monkeypatch):
    """Pre-configured app with auth and all chat routes."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from auth import APIKeyMiddleware
    from routes import chat_stream, chats

    monkeypatch.setattr(APIKeyMiddleware, "API_KEYS", dict(TEST_API_KEYS))

    app = FastAPI()
    app.add_middleware(APIKeyMiddleware)
    app.include_router(chat_stream.router)
    app.include_router(chats.router)

    @app.get("/")
    async def root():
        return {"message": "ok"}

    with TestClient(app) as client:
        yield client
