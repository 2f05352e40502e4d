import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from ghfetch.models import SourceConfig
from tests.fakes import FakeGitHub


@pytest_asyncio.fixture
async def github():
    fake = FakeGitHub()
    server = TestServer(fake.app)
    await server.start_server()
    fake.base_url = str(server.make_url("")).rstrip("/")
    yield fake
    await server.close()


@pytest.fixture
def make_config(tmp_path):
    def _make(github: FakeGitHub, **overrides) -> SourceConfig:
        values = dict(
            api_url=f"{github.base_url}/api",
            github_url=f"{github.base_url}/gh",
            raw_url=f"{github.base_url}/raw",
            tmp_dir=str(tmp_path / "tmp"),
            timeout=5,
        )
        values.update(overrides)
        return SourceConfig(**values)

    return _make
