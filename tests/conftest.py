"""Shared test fixtures for the catalogwiki test suite.

Tests run against a throwaway SQLite file. The schema is dropped and
recreated before every test, so each test starts from empty tables.
Model calls never leave the process: tests hand the pipeline a
FakeGenerator, and LiteLLM itself is patched where the real client is
exercised.
"""

import io
import os
import tempfile
import threading
import zipfile

# Point the app at scratch storage before any app imports.
_SCRATCH = tempfile.mkdtemp(prefix="catalogwiki-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_SCRATCH, 'test.db')}"
os.environ["REPOSITORY_BASE_DIR"] = os.path.join(_SCRATCH, "repository")
os.environ["LLM_MODEL"] = ""
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from catalogwiki.api.deps import get_archive_service, get_detail_generator, get_llm_client
from catalogwiki.database import Base, engine, SessionLocal
from catalogwiki.main import app
from catalogwiki.services.archive_service import ArchiveService
from catalogwiki.services.detail_generator import DetailGenerator
from catalogwiki.services.prompts import OUTLINE_TAG


SAMPLE_OUTLINE = """{
  "items": [
    {
      "title": "overview",
      "name": "Overview",
      "prompt": "Describe the project",
      "dependent_file": ["README.md"],
      "children": [
        {"title": "setup", "name": "Setup", "prompt": "How to install", "dependent_file": ["README.md"]},
        {"title": "usage", "name": "Usage", "prompt": "How to run", "dependent_file": ["src/main.py"]}
      ]
    },
    {
      "title": "architecture",
      "name": "Architecture",
      "prompt": "Explain the design",
      "dependent_file": [],
      "children": [
        {"title": "modules", "name": "Modules", "prompt": "List modules", "dependent_file": ["src/main.py"]}
      ]
    }
  ]
}"""


class FakeGenerator:
    """Stands in for the model client.

    Outline prompts get *outline* wrapped in the outline tag; every other
    prompt is answered by *detail*, which may be a string, an exception to
    raise, or a callable taking the prompt.
    """

    def __init__(self, outline=SAMPLE_OUTLINE, detail="# Section\n\nGenerated content."):
        self.outline = outline
        self.detail = detail
        self.prompts = []
        self._lock = threading.Lock()

    def generate(self, prompt):
        with self._lock:
            self.prompts.append(prompt)
        if f"<{OUTLINE_TAG}>" in prompt:
            if isinstance(self.outline, Exception):
                raise self.outline
            return f"Here is the outline.\n<{OUTLINE_TAG}>\n{self.outline}\n</{OUTLINE_TAG}>"
        if isinstance(self.detail, Exception):
            raise self.detail
        if callable(self.detail):
            return self.detail(prompt)
        return self.detail

    @property
    def detail_prompts(self):
        return [p for p in self.prompts if f"<{OUTLINE_TAG}>" not in p]


def make_zip(entries) -> io.BytesIO:
    """Build an in-memory zip from ``{name: content}``. Names ending in / are directories."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            if name.endswith("/"):
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, content)
    buffer.seek(0)
    return buffer


SAMPLE_REPOSITORY = {
    "README.md": "# Sample\n",
    "src/": b"",
    "src/main.py": "print('hello')\n",
    "build/out.bin": b"\x00\x01",
    ".gitignore": "build/\n",
}


@pytest.fixture(autouse=True)
def _reset_schema():
    """Recreate all tables before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def fake_generator():
    return FakeGenerator()


@pytest.fixture()
def detail_generator(fake_generator):
    """A small detail pool writing through the app's session factory."""
    pool = DetailGenerator(fake_generator, SessionLocal, max_workers=2)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture()
def archive_service(tmp_path):
    return ArchiveService(base_dir=str(tmp_path / "repository"))


@pytest.fixture()
def client(fake_generator, detail_generator, archive_service):
    """FastAPI TestClient with the model collaborators overridden.

    Requests keep the real get_db so each one sees rows committed by
    detail generation threads.
    """
    app.dependency_overrides[get_llm_client] = lambda: fake_generator
    app.dependency_overrides[get_detail_generator] = lambda: detail_generator
    app.dependency_overrides[get_archive_service] = lambda: archive_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
