"""
Tests del registro de completado de tareas
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from models.cleaning import CleaningVisitTask
from services.cleaning_errors import NotFound, TransientStorageError
from services.completion_service import CompletionService
from services.task_materializer import materialize
from services.visit_service import VisitService
from tests.helpers import OTHER_PROPERTY_ID, PROPERTY_ID, make_task


class TestSetCompletion:

    def _setup(self, db):
        make_task(db, "Barrer", display_order=1)
        make_task(db, "Trapear", display_order=2)
        self.visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        self.items = materialize(db, PROPERTY_ID, self.visit.id, "kitchen")
        self.vt_id = self.items[0].visit_task.id

    def test_complete_sets_attribution(self, db):
        self._setup(db)
        vt = CompletionService.set_completion(db, PROPERTY_ID, self.vt_id, True, actor_id="ana")

        assert vt.is_completed is True
        assert vt.completed_by == "ana"
        assert vt.completed_at is not None

    def test_complete_twice_is_idempotent(self, db):
        self._setup(db)
        first = CompletionService.set_completion(db, PROPERTY_ID, self.vt_id, True, actor_id="ana")
        first_at = first.completed_at

        second = CompletionService.set_completion(db, PROPERTY_ID, self.vt_id, True, actor_id="ana")
        assert second.is_completed is True
        assert second.completed_by == "ana"
        assert second.completed_at >= first_at

    def test_uncomplete_clears_attribution(self, db):
        self._setup(db)
        CompletionService.set_completion(db, PROPERTY_ID, self.vt_id, True, actor_id="ana")
        vt = CompletionService.set_completion(db, PROPERTY_ID, self.vt_id, False, actor_id="ana")

        assert vt.is_completed is False
        assert vt.completed_by is None
        assert vt.completed_at is None

    def test_unknown_task_is_not_found(self, db):
        self._setup(db)
        with pytest.raises(NotFound):
            CompletionService.set_completion(db, PROPERTY_ID, 99999, True, actor_id="ana")

    def test_task_of_other_property_is_not_found(self, db):
        self._setup(db)
        with pytest.raises(NotFound) as exc_info:
            CompletionService.set_completion(db, OTHER_PROPERTY_ID, self.vt_id, True, actor_id="ana")
        assert exc_info.value.operation == "set_completion"
        assert exc_info.value.context["visit_task_id"] == self.vt_id


class TestToggleCompletion:

    def test_toggle_alternates(self, db):
        make_task(db, "Barrer")
        visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        vt_id = materialize(db, PROPERTY_ID, visit.id, "kitchen")[0].visit_task.id

        vt = CompletionService.toggle_completion(db, PROPERTY_ID, vt_id, actor_id="ana")
        assert vt.is_completed is True
        assert vt.completed_by == "ana"

        vt = CompletionService.toggle_completion(db, PROPERTY_ID, vt_id, actor_id="luis")
        assert vt.is_completed is False
        assert vt.completed_by is None
        assert vt.completed_at is None

    def test_toggle_storage_error_is_not_retryable(self):
        db = MagicMock(spec=Session)
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        with pytest.raises(TransientStorageError) as exc_info:
            CompletionService.toggle_completion(db, PROPERTY_ID, 5, actor_id="ana")

        assert exc_info.value.retryable is False
        assert exc_info.value.operation == "toggle_completion"
        db.rollback.assert_called_once()

    def test_set_storage_error_is_retryable(self):
        db = MagicMock(spec=Session)
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("timeout"))

        with pytest.raises(TransientStorageError) as exc_info:
            CompletionService.set_completion(db, PROPERTY_ID, 5, True, actor_id="ana")

        assert exc_info.value.retryable is True
        assert exc_info.value.context == {"property_id": PROPERTY_ID, "visit_task_id": 5, "actor_id": "ana"}


class TestCompleteAll:

    def _setup(self, db):
        for i in range(4):
            make_task(db, f"Tarea {i}", display_order=i)
        self.visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        self.ids = [item.visit_task.id for item in materialize(db, PROPERTY_ID, self.visit.id, "kitchen")]

    def test_completes_every_listed_task(self, db):
        self._setup(db)
        updated = CompletionService.complete_all(db, PROPERTY_ID, self.visit.id, self.ids, actor_id="ana")

        assert updated == 4
        rows = db.query(CleaningVisitTask).filter(CleaningVisitTask.visit_id == self.visit.id).all()
        assert all(r.is_completed for r in rows)
        assert all(r.completed_by == "ana" for r in rows)
        assert all(r.completed_at is not None for r in rows)

    def test_ids_of_other_visits_are_ignored(self, db):
        self._setup(db)
        other = VisitService.get_or_create_visit(db, PROPERTY_ID)
        other_ids = [item.visit_task.id for item in materialize(db, PROPERTY_ID, other.id, "kitchen")]

        updated = CompletionService.complete_all(
            db, PROPERTY_ID, self.visit.id, self.ids[:2] + other_ids, actor_id="ana",
        )

        assert updated == 2
        others = db.query(CleaningVisitTask).filter(CleaningVisitTask.visit_id == other.id).all()
        assert not any(r.is_completed for r in others)

    def test_already_completed_are_updated_too(self, db):
        self._setup(db)
        CompletionService.set_completion(db, PROPERTY_ID, self.ids[0], True, actor_id="luis")

        updated = CompletionService.complete_all(db, PROPERTY_ID, self.visit.id, self.ids, actor_id="ana")

        assert updated == 4
        first = db.get(CleaningVisitTask, self.ids[0])
        db.refresh(first)
        assert first.is_completed is True
        assert first.completed_by == "ana"

    def test_empty_list_updates_nothing(self, db):
        self._setup(db)
        assert CompletionService.complete_all(db, PROPERTY_ID, self.visit.id, [], actor_id="ana") == 0

    def test_visit_of_other_property_is_not_found(self, db):
        self._setup(db)
        with pytest.raises(NotFound):
            CompletionService.complete_all(db, OTHER_PROPERTY_ID, self.visit.id, self.ids, actor_id="ana")


class TestAttachEvidence:

    def test_photo_does_not_require_completion(self, db):
        make_task(db, "Barrer")
        visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        vt_id = materialize(db, PROPERTY_ID, visit.id, "kitchen")[0].visit_task.id

        vt = CompletionService.attach_evidence(db, PROPERTY_ID, vt_id, "https://cdn.test/cleaning-photos/1.jpg")

        assert vt.photo_url == "https://cdn.test/cleaning-photos/1.jpg"
        assert vt.is_completed is False

    def test_unknown_task_is_not_found(self, db):
        with pytest.raises(NotFound):
            CompletionService.attach_evidence(db, PROPERTY_ID, 12345, "https://cdn.test/x.jpg")
