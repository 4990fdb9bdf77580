"""
Collaborator endpoints and the outbound HTTP client.

One httpx.AsyncClient is created at startup and shared by every request;
it keeps a connection pool and no per-request state.
"""
import os

import httpx
from dotenv import load_dotenv
from fastapi import Request

load_dotenv()

USER_SERVICE_URL = os.getenv("USER_SERVICE_URL", "http://localhost:7001").rstrip("/")
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "http://localhost:8082").rstrip("/")

# Applied to every outbound call, there are no retries on top of it
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(UPSTREAM_TIMEOUT_SECONDS))


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """Dependency returning the client opened in the app's startup hook."""
    return request.app.state.http_client
