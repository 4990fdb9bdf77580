import os

# Must be set before the app modules read their configuration
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from shared.config.database import Base, get_db
from shared.config.upstream import get_http_client
from services.order_service.main import order_app


class FakeUpstream:
    """
    Stands in for the user and product services behind an httpx.MockTransport.

    users:            ids the user service knows about
    prices:           product id -> price returned by the product service
    product_status:   product id -> non-200 status to answer with instead
    raw_products:     product id -> raw body (for decode failures)
    unreachable:      set of 'user'/'product' that raise a connection error
    """

    def __init__(self):
        self.users = {7}
        self.prices = {101: 9.99, 102: 5.00, 103: 1.25, 104: 20.00, 105: 0.01}
        self.product_status = {}
        self.raw_products = {}
        self.user_status = None
        self.unreachable = set()
        self.calls = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        parts = request.url.path.strip("/").split("/")

        if parts[:2] == ["api", "users"]:
            if "user" in self.unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            if self.user_status is not None:
                return httpx.Response(self.user_status)
            user_id = int(parts[2])
            if user_id not in self.users:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json={"id": user_id, "name": "Ada"})

        if parts[:2] == ["api", "products"]:
            if "product" in self.unreachable:
                raise httpx.ConnectTimeout("timed out", request=request)
            pid = int(parts[2])
            if pid in self.product_status:
                return httpx.Response(self.product_status[pid])
            if pid in self.raw_products:
                return httpx.Response(200, content=self.raw_products[pid])
            if pid not in self.prices:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(
                200, json={"_id": str(pid), "name": f"Product {pid}", "price": self.prices[pid]}
            )

        return httpx.Response(404)

    @property
    def product_calls(self):
        return [c for c in self.calls if c.startswith("/api/products/")]


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handle)) as client:
        yield client


@pytest.fixture
async def api(session_factory, http_client):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_http_client():
        return http_client

    order_app.dependency_overrides[get_db] = override_get_db
    order_app.dependency_overrides[get_http_client] = override_get_http_client
    transport = httpx.ASGITransport(app=order_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    order_app.dependency_overrides.clear()
