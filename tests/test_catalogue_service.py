"""Tests for CatalogueService: outline -> persisted rows."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from catalogwiki.exceptions import CatalogueNotFoundError, DatabaseError
from catalogwiki.models import Catalogue, CatalogueStatus
from catalogwiki.services.catalogue_service import CatalogueService
from catalogwiki.services.outline_parser import parse_outline
from catalogwiki.services.task_service import TaskService
from tests.conftest import SAMPLE_OUTLINE


class TestBuild:

    def test_one_row_per_node(self, db):
        build = CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))

        assert len(build.records) == 5
        assert len(build.parents) == 2
        assert len(build.children) == 3
        assert db.query(Catalogue).count() == 5

    def test_all_rows_start_in_progress(self, db):
        CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))
        statuses = {row.status for row in db.query(Catalogue).all()}
        assert statuses == {CatalogueStatus.IN_PROGRESS.value}

    def test_children_reference_their_parent(self, db):
        build = CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))
        overview, architecture = build.parents

        children_of = lambda parent: [
            r.title for r in build.children if r.parent_catalogue_id == parent.catalogue_id
        ]
        assert children_of(overview) == ["setup", "usage"]
        assert children_of(architecture) == ["modules"]
        assert overview.parent_catalogue_id is None

    def test_ids_are_unique(self, db):
        build = CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))
        ids = [r.catalogue_id for r in build.records]
        assert len(set(ids)) == len(ids)

    def test_dependent_files_joined(self, db):
        build = CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))
        usage = next(r for r in build.records if r.title == "usage")
        assert usage.dependent_file == "src/main.py"
        assert usage.dependent_files == ["src/main.py"]

        architecture = next(r for r in build.records if r.title == "architecture")
        assert architecture.dependent_file == ""
        assert architecture.dependent_files == []

    def test_failed_write_commits_nothing(self, db):
        service = CatalogueService(db)
        with patch.object(service.repo, "bulk_insert", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
            with pytest.raises(DatabaseError):
                service.build(parse_outline(SAMPLE_OUTLINE))
        assert db.query(Catalogue).count() == 0


class TestReads:

    def test_get(self, db):
        build = CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))
        row = CatalogueService(db).get(build.records[0].catalogue_id)
        assert row.title == "overview"

    def test_get_missing_raises(self, db):
        with pytest.raises(CatalogueNotFoundError):
            CatalogueService(db).get("nope")

    def test_as_tree_preserves_outline_order(self, db):
        task = TaskService(db).create("alice", "demo")
        CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE), task_id=task.task_id)

        tree = CatalogueService(db).as_tree(task.task_id)
        assert [node.title for node in tree] == ["overview", "architecture"]
        assert [c.title for c in tree[0].children] == ["setup", "usage"]
        assert [c.title for c in tree[1].children] == ["modules"]

    def test_as_tree_for_unknown_task_is_empty(self, db):
        assert CatalogueService(db).as_tree("missing") == []


class TestFailPending:

    def test_marks_only_in_progress_rows(self, db):
        build = CatalogueService(db).build(parse_outline(SAMPLE_OUTLINE))
        setup, usage = build.children[0], build.children[1]
        CatalogueService(db).repo.update_by_id(setup.catalogue_id, status=CatalogueStatus.COMPLETED.value)
        db.commit()

        updated = CatalogueService(db).fail_pending([setup.catalogue_id, usage.catalogue_id], "not dispatched")

        assert updated == 1
        db.expire_all()
        assert CatalogueService(db).get(setup.catalogue_id).status == CatalogueStatus.COMPLETED.value
        failed = CatalogueService(db).get(usage.catalogue_id)
        assert failed.status == CatalogueStatus.FAILED.value
        assert failed.fail_reason == "not dispatched"
