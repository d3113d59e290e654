"""Tests for concurrent detail generation.

Each unit must end in exactly one terminal status on its own row, whatever
the model or the database does.
"""

from concurrent.futures import wait
from unittest.mock import patch

import pytest

from catalogwiki.database import SessionLocal
from catalogwiki.exceptions import GenerationError
from catalogwiki.models import Catalogue, CatalogueStatus
from catalogwiki.services.catalogue_service import CatalogueService
from catalogwiki.services.detail_generator import (
    MAX_FAIL_REASON_CHARS,
    DetailContext,
    DetailGenerator,
    DetailJob,
    describe_failure,
)
from catalogwiki.services.outline_parser import parse_outline
from tests.conftest import SAMPLE_OUTLINE, FakeGenerator


@pytest.fixture()
def build(db):
    return CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))


@pytest.fixture()
def context(build):
    return DetailContext(repository_path="/repo", file_tree="  - README.md\n", outline=build.outline)


def _rows():
    """Read rows through a fresh session so worker commits are visible."""
    session = SessionLocal()
    try:
        return {row.title: row for row in session.query(Catalogue).all()}
    finally:
        session.close()


def _run(generator, build, context):
    pool = DetailGenerator(generator, SessionLocal, max_workers=2)
    try:
        futures = pool.dispatch(build.records, context)
        wait(futures)
        return futures
    finally:
        pool.shutdown(wait=True)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class TestDispatch:

    def test_children_completed_with_content(self, build, context):
        futures = _run(FakeGenerator(detail="# Done"), build, context)

        assert [f.result() for f in futures] == [CatalogueStatus.COMPLETED] * 3
        rows = _rows()
        for title in ("setup", "usage", "modules"):
            assert rows[title].status == CatalogueStatus.COMPLETED.value
            assert rows[title].content == "# Done"
            assert rows[title].fail_reason is None

    def test_parents_are_skipped(self, build, context):
        generator = FakeGenerator()
        futures = _run(generator, build, context)

        assert len(futures) == 3
        assert len(generator.detail_prompts) == 3
        rows = _rows()
        for title in ("overview", "architecture"):
            assert rows[title].status == CatalogueStatus.IN_PROGRESS.value
            assert rows[title].content is None

    def test_model_exception_marks_failed(self, build, context):
        futures = _run(FakeGenerator(detail=RuntimeError("provider down")), build, context)

        assert all(f.result() == CatalogueStatus.FAILED for f in futures)
        rows = _rows()
        assert rows["setup"].status == CatalogueStatus.FAILED.value
        assert "provider down" in rows["setup"].fail_reason
        assert rows["setup"].content is None

    def test_empty_result_marks_failed(self, build, context):
        _run(FakeGenerator(detail="   "), build, context)
        assert _rows()["usage"].status == CatalogueStatus.FAILED.value
        assert "empty" in _rows()["usage"].fail_reason

    def test_one_failure_does_not_affect_siblings(self, build, context):
        def detail(prompt):
            if "Section to write: Usage" in prompt:
                raise GenerationError("boom")
            return "fine"

        _run(FakeGenerator(detail=detail), build, context)
        rows = _rows()
        assert rows["usage"].status == CatalogueStatus.FAILED.value
        assert rows["setup"].status == CatalogueStatus.COMPLETED.value
        assert rows["modules"].status == CatalogueStatus.COMPLETED.value

    def test_no_child_left_in_progress(self, build, context):
        _run(FakeGenerator(detail=lambda p: "" if "Section to write: Setup" in p else "ok"), build, context)
        children = [r for r in _rows().values() if r.parent_catalogue_id is not None]
        assert all(r.status != CatalogueStatus.IN_PROGRESS.value for r in children)

    def test_prompt_carries_section_and_outline(self, build, context):
        generator = FakeGenerator()
        _run(generator, build, context)

        prompt = next(p for p in generator.detail_prompts if "Section to write: Modules" in p)
        assert "List modules" in prompt
        assert "/repo" in prompt
        assert "  - README.md" in prompt
        assert '"title":"architecture"' in prompt

    def test_empty_outline_dispatches_nothing(self, db, context):
        pool = DetailGenerator(FakeGenerator(), SessionLocal, max_workers=1)
        try:
            assert pool.dispatch([], context) == []
        finally:
            pool.shutdown()


class TestTerminalStatus:

    def test_completed_row_not_overwritten(self, build, context):
        setup = next(r for r in build.records if r.title == "setup")
        pool = DetailGenerator(FakeGenerator(detail="first"), SessionLocal, max_workers=1)
        try:
            job = DetailJob.from_record(setup)
            outline_json = context.outline.model_dump_json()
            pool.generate_one(job, context, outline_json)
            pool._generator = FakeGenerator(detail=RuntimeError("late"))
            pool.generate_one(job, context, outline_json)
        finally:
            pool.shutdown()

        row = _rows()["setup"]
        assert row.status == CatalogueStatus.COMPLETED.value
        assert row.content == "first"

    def test_save_failure_falls_back_to_failed(self, build, context):
        setup = next(r for r in build.records if r.title == "setup")
        pool = DetailGenerator(FakeGenerator(detail="content"), SessionLocal, max_workers=1)
        original_write = pool._write
        calls = []

        def flaky_write(catalogue_id, status, content, reason):
            calls.append(status)
            if status is CatalogueStatus.COMPLETED:
                raise RuntimeError("write failed")
            original_write(catalogue_id, status, content, reason)

        try:
            with patch.object(pool, "_write", side_effect=flaky_write):
                status = pool.generate_one(
                    DetailJob.from_record(setup), context, context.outline.model_dump_json()
                )
        finally:
            pool.shutdown()

        assert status == CatalogueStatus.FAILED
        assert calls == [CatalogueStatus.COMPLETED, CatalogueStatus.FAILED]
        row = _rows()["setup"]
        assert row.status == CatalogueStatus.FAILED.value
        assert row.fail_reason.startswith("Failed to save generated content")


class TestShutdown:

    def test_dispatch_after_shutdown_raises(self, build, context):
        pool = DetailGenerator(FakeGenerator(), SessionLocal, max_workers=1)
        pool.shutdown()
        with pytest.raises(RuntimeError):
            pool.dispatch(build.records, context)

    def test_shutdown_waits_for_running_units(self, build, context):
        pool = DetailGenerator(FakeGenerator(), SessionLocal, max_workers=1)
        futures = pool.dispatch(build.records, context)
        pool.shutdown(wait=True)
        assert all(f.done() for f in futures)

    def test_default_worker_bound_from_settings(self):
        with patch("catalogwiki.services.detail_generator.settings") as mock_settings:
            mock_settings.detail_max_workers = 7
            pool = DetailGenerator(FakeGenerator(), SessionLocal)
        try:
            assert pool.max_workers == 7
        finally:
            pool.shutdown()


class TestDescribeFailure:

    def test_generation_error_message_kept_plain(self):
        assert describe_failure(GenerationError("Model call failed")) == "Model call failed"

    def test_other_errors_prefixed_with_type(self):
        assert describe_failure(ValueError("bad")) == "ValueError: bad"

    def test_truncated(self):
        assert len(describe_failure(ValueError("x" * 5000))) == MAX_FAIL_REASON_CHARS
