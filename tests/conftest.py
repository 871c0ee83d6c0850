from pathlib import Path

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from repair_planner.config import AppSettings, EndpointConfig
from repair_planner.main import create_app
from repair_planner.store import RecordStore
from tests.fakes import FakeGenerationClient


def make_settings(tmp_path: Path, **overrides) -> AppSettings:
    settings = AppSettings(
        generation_endpoint=EndpointConfig(base_url="http://gen.test/v1", model_id="test-model"),
        generation_api_key=None,
        database_path=str(tmp_path / "test.db"),
        host="127.0.0.1",
        port=8000,
    )
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return make_settings(tmp_path)


@pytest.fixture
async def store(settings: AppSettings) -> RecordStore:
    record_store = RecordStore(settings.database_path)
    await record_store.init()
    return record_store


@pytest.fixture
def app_factory(tmp_path: Path):
    def _factory(*, fake_gen: FakeGenerationClient | None = None, **settings_overrides):
        settings = make_settings(tmp_path, **settings_overrides)
        gen_client = fake_gen or FakeGenerationClient()
        app = create_app(settings, generation_client=gen_client)
        return app, gen_client

    return _factory


@pytest.fixture
async def client(app_factory):
    app, gen_client = app_factory()
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as http_client:
            http_client.app = app  # type: ignore[attr-defined]
            http_client.fake_gen = gen_client  # type: ignore[attr-defined]
            yield http_client
