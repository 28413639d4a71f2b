"""
Authentication middleware resolving API keys to user ids.
"""
import os
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from utils.logger import app_logger


def parse_api_keys(raw: str) -> dict[str, str]:
    """
    Parse "user_id:key,other_user:key2" into a key -> user id mapping.

    Entries without a user id or key are ignored.
    """
    keys = {}
    for entry in raw.split(","):
        user_id, _, key = entry.strip().partition(":")
        if user_id.strip() and key.strip():
            keys[key.strip()] = user_id.strip()
    return keys


class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Checks the X-API-Key header against the configured keys and stores
    the matching user id on request.state.user_id.
    """

    EXCLUDED_PATHS = {"/", "/docs", "/openapi.json", "/redoc"}
    API_KEYS: dict[str, str] = parse_api_keys(os.getenv("API_KEYS", ""))

    async def dispatch(self, request: Request, call_next):
        """
        Process each request and authenticate its API key.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response from next handler or error response
        """
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        if not self.API_KEYS:
            app_logger.error("CRITICAL: API_KEYS not set in .env file!")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "detail": "Server misconfiguration: API_KEYS not set. Please configure API_KEYS in .env file.",
                    "error": "server_error"
                },
            )

        api_key = request.headers.get("X-API-Key")
        client_host = request.client.host if request.client else "unknown"

        if not api_key:
            app_logger.warning(f"Unauthorized request from {client_host} - Missing API key")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "detail": "Missing API key. Include 'X-API-Key' header in your request.",
                    "error": "unauthorized"
                },
                headers={"WWW-Authenticate": "ApiKey"},
            )

        user_id = self.API_KEYS.get(api_key)
        if user_id is None:
            app_logger.warning(f"Unauthorized request from {client_host} - Invalid API key")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "detail": "Invalid API key",
                    "error": "unauthorized"
                },
                headers={"WWW-Authenticate": "ApiKey"},
            )

        request.state.user_id = user_id
        return await call_next(request)
