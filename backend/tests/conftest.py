"""Test fixtures for Vector Lite."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from vector_lite.core.config import ProviderConfig, Settings  # noqa: E402
from vector_lite.db.sqlite import SQLiteDatabase  # noqa: E402
from vector_lite.embeddings.client import EmbeddingClient  # noqa: E402
from vector_lite.embeddings.providers import EmbeddingProvider, EmbeddingVector  # noqa: E402
from vector_lite.groups.service import GroupService  # noqa: E402
from vector_lite.ingest.pipeline import IngestPipeline  # noqa: E402
from vector_lite.queue.service import EmbeddingQueue  # noqa: E402
from vector_lite.retrieval.search import SearchEngine  # noqa: E402


class FakeProvider(EmbeddingProvider):
    """Returns canned vectors by text; raises configured errors."""

    name = "fake"

    def __init__(self) -> None:
        super().__init__(ProviderConfig(model="fake-model", dimensions=3))
        self.vectors: dict[str, list[float]] = {}
        self.failures: dict[str, Exception] = {}
        self.default = [1.0, 0.0, 0.0]
        self.before_embed: Callable[[str], None] | None = None
        self.calls: list[str] = []

    def embed(self, text: str) -> EmbeddingVector:
        self.calls.append(text)
        if self.before_embed is not None:
            self.before_embed(text)
        if text in self.failures:
            raise self.failures[text]
        values = list(self.vectors.get(text, self.default))
        return EmbeddingVector(values=values, model=self.model, provider=self.name)


def _reset_singletons() -> None:
    from vector_lite.api import dependencies as deps
    from vector_lite.core.config import get_settings

    if deps._DB is not None:
        deps._DB.close()
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._DB = None
    deps._CLIENT = None
    deps._QUEUE = None
    deps._GROUPS = None
    deps._PIPELINE = None
    deps._SEARCH = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("VLA_DB_PATH", str(tmp_path / "vla.db"))
    monkeypatch.delenv("VLA_CONFIG", raising=False)
    _reset_singletons()
    yield
    _reset_singletons()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(db_path=tmp_path / "service.db", chunk_size=60, chunk_overlap=0, default_provider="fake")


@pytest.fixture
def db(settings: Settings) -> SQLiteDatabase:
    database = SQLiteDatabase(settings.db_path)
    database.ensure_schema()
    yield database
    database.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def embedding_client(settings: Settings, fake_provider: FakeProvider) -> EmbeddingClient:
    return EmbeddingClient(settings, providers=[fake_provider])


@pytest.fixture
def groups(db: SQLiteDatabase) -> GroupService:
    return GroupService(db)


@pytest.fixture
def queue(db: SQLiteDatabase, embedding_client: EmbeddingClient) -> EmbeddingQueue:
    return EmbeddingQueue(db, embedding_client)


@pytest.fixture
def pipeline(db: SQLiteDatabase, settings: Settings, queue: EmbeddingQueue, groups: GroupService) -> IngestPipeline:
    return IngestPipeline(db, settings, queue, groups)


@pytest.fixture
def engine(db: SQLiteDatabase, embedding_client: EmbeddingClient) -> SearchEngine:
    return SearchEngine(db, embedding_client)


@pytest.fixture
def make_text() -> Callable[[str, int], str]:
    """Text whose paragraphs each become one segment under the ``settings`` fixture."""

    def _make(prefix: str, count: int) -> str:
        return "\n\n".join(paragraph(prefix, index) for index in range(count))

    return _make


@pytest.fixture
def segment_text() -> Callable[[str, int], str]:
    """The exact text of segment ``index`` produced by ``make_text(prefix, ...)``."""
    return paragraph


def paragraph(prefix: str, index: int) -> str:
    return f"{prefix} segment {index} " + "x" * 30


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "Title\n\nParagraph one.\n\nParagraph two is here."
