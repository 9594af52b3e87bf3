from typing import Any, AsyncGenerator, Callable, Optional

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt

from tacklebox.settings import settings
from tacklebox.web.application import get_app
from tacklebox.web.lifespan import setup_workflow
from tacklebox.workflow.config import WorkflowConfig, default_config
from tacklebox.workflow.models import AdminUser, ClientUser, ContractorUser


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Backend for anyio pytest plugin.

    :return: backend name.
    """
    return "asyncio"


@pytest.fixture
def config() -> WorkflowConfig:
    return default_config()


@pytest.fixture
def client_user() -> ClientUser:
    return ClientUser(id=1)


@pytest.fixture
def contractor_user() -> ContractorUser:
    return ContractorUser(id=2, level=3)


@pytest.fixture
def admin_user() -> AdminUser:
    return AdminUser(id=3, level=1)


@pytest.fixture
def fastapi_app() -> FastAPI:
    """
    Fixture for creating FastAPI app.

    :return: fastapi app with the workflow tables loaded.
    """
    application = get_app()
    setup_workflow(application)
    return application


@pytest.fixture
async def client(fastapi_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Fixture that creates client for requesting server.

    :param fastapi_app: the application.
    :yield: client for the app.
    """
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Issue tokens the way the identity provider does."""

    def _make(sub: Any, role: str, level: Optional[int] = None) -> str:
        claims = {"sub": str(sub), "role": role}
        if level is not None:
            claims["level"] = level
        return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    return _make


@pytest.fixture
def auth_header(make_token: Callable[..., str]) -> Callable[..., dict]:
    def _header(sub: Any, role: str, level: Optional[int] = None) -> dict:
        return {"Authorization": f"Bearer {make_token(sub, role, level)}"}

    return _header
