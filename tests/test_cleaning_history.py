"""
Tests del historial de visitas y estadísticas
"""
from datetime import date

import pytest

from models.cleaning import CleaningVisit
from services import cleaning_history
from services.cleaning_errors import NotFound
from services.cleaning_history import completion_percentage
from services.completion_service import CompletionService
from services.task_materializer import materialize
from services.visit_service import VisitService
from tests.helpers import OTHER_PROPERTY_ID, PROPERTY_ID, make_reservation, make_room, make_task


class TestCompletionPercentage:

    def test_no_tasks(self):
        assert completion_percentage(0, 0) == 0

    def test_rounding(self):
        assert completion_percentage(1, 3) == 33
        assert completion_percentage(2, 3) == 67
        assert completion_percentage(4, 4) == 100

    def test_half_rounds_up(self):
        assert completion_percentage(1, 8) == 13  # 12.5
        assert completion_percentage(1, 200) == 1  # 0.5


class TestVisitDetailAndStats:

    def _setup(self, db):
        self.kitchen = [make_task(db, f"Cocina {i}", display_order=i) for i in range(3)]
        self.bath = [make_task(db, "Baño 1", room="guest_bathroom")]
        self.visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        self.k_items = materialize(db, PROPERTY_ID, self.visit.id, "kitchen")
        self.b_items = materialize(db, PROPERTY_ID, self.visit.id, "guest_bathroom")

    def test_groups_by_room(self, db):
        self._setup(db)
        CompletionService.set_completion(db, PROPERTY_ID, self.k_items[0].visit_task.id, True, actor_id="ana")

        detail = cleaning_history.get_visit_detail(db, PROPERTY_ID, self.visit.id)
        rooms = {r["key"]: r for r in detail["rooms"]}

        assert list(rooms) == ["kitchen", "guest_bathroom"]
        assert rooms["kitchen"]["name"] == "Kitchen"
        assert rooms["kitchen"]["icon"] == "utensils"
        assert rooms["kitchen"]["total"] == 3
        assert rooms["kitchen"]["completed"] == 1
        assert [t["name"] for t in rooms["kitchen"]["tasks"]] == ["Cocina 0", "Cocina 1", "Cocina 2"]
        assert rooms["guest_bathroom"]["total"] == 1

    def test_stats_match_room_groups(self, db):
        self._setup(db)
        CompletionService.set_completion(db, PROPERTY_ID, self.k_items[1].visit_task.id, True, actor_id="ana")
        CompletionService.set_completion(db, PROPERTY_ID, self.b_items[0].visit_task.id, True, actor_id="ana")

        detail = cleaning_history.get_visit_detail(db, PROPERTY_ID, self.visit.id)
        stats = cleaning_history.compute_stats(db, PROPERTY_ID, self.visit.id)

        assert stats == {"total": 4, "completed": 2, "percentage": 50}
        assert stats["total"] == sum(r["total"] for r in detail["rooms"])
        assert stats["completed"] == sum(r["completed"] for r in detail["rooms"])
        assert detail["stats"] == stats

    def test_deleted_definition_goes_to_orphaned_group(self, db):
        self._setup(db)
        deleted_name = self.kitchen[2].name
        db.delete(self.kitchen[2])
        db.commit()

        detail = cleaning_history.get_visit_detail(db, PROPERTY_ID, self.visit.id)
        rooms = {r["key"]: r for r in detail["rooms"]}

        assert rooms["kitchen"]["total"] == 2
        assert rooms["orphaned"]["total"] == 1
        assert rooms["orphaned"]["name"] == "Orphaned"
        orphan = rooms["orphaned"]["tasks"][0]
        assert orphan["orphaned"] is True
        assert orphan["name"] == deleted_name
        assert list(rooms)[-1] == "orphaned"

        stats = cleaning_history.compute_stats(db, PROPERTY_ID, self.visit.id)
        assert stats["total"] == 4

    def test_custom_room_uses_registry_name(self, db):
        make_room(db, "Game Room", "game_room", icon="sofa")
        make_task(db, "Ordenar juegos", room="game_room")
        visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        materialize(db, PROPERTY_ID, visit.id, "game_room")

        detail = cleaning_history.get_visit_detail(db, PROPERTY_ID, visit.id)
        assert detail["rooms"][0]["name"] == "Game Room"
        assert detail["rooms"][0]["icon"] == "sofa"

    def test_empty_visit(self, db):
        visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        assert cleaning_history.compute_stats(db, PROPERTY_ID, visit.id) == {
            "total": 0, "completed": 0, "percentage": 0,
        }
        assert cleaning_history.get_visit_detail(db, PROPERTY_ID, visit.id)["rooms"] == []

    def test_other_property_is_not_found(self, db):
        self._setup(db)
        with pytest.raises(NotFound):
            cleaning_history.get_visit_detail(db, OTHER_PROPERTY_ID, self.visit.id)
        with pytest.raises(NotFound):
            cleaning_history.compute_stats(db, OTHER_PROPERTY_ID, self.visit.id)


class TestListVisits:

    def test_newest_first_with_reservation_title(self, db):
        reservation = make_reservation(db, title="Familia Pérez")
        old = CleaningVisit(property_id=PROPERTY_ID, visit_date=date(2024, 12, 1), status="completed")
        new = CleaningVisit(
            property_id=PROPERTY_ID, visit_date=date(2025, 2, 1), status="in_progress",
            reservation_id=reservation.id,
        )
        foreign = CleaningVisit(property_id=OTHER_PROPERTY_ID, visit_date=date(2025, 3, 1), status="in_progress")
        db.add_all([old, new, foreign])
        db.commit()

        visits = cleaning_history.list_visits(db, PROPERTY_ID)

        assert [v["visit_date"] for v in visits] == [date(2025, 2, 1), date(2024, 12, 1)]
        assert visits[0]["reservation_title"] == "Familia Pérez"
        assert visits[1]["reservation_title"] is None

    def test_includes_stats(self, db):
        make_task(db, "Barrer")
        make_task(db, "Trapear")
        visit = VisitService.get_or_create_visit(db, PROPERTY_ID)
        items = materialize(db, PROPERTY_ID, visit.id, "kitchen")
        CompletionService.set_completion(db, PROPERTY_ID, items[0].visit_task.id, True, actor_id="ana")

        visits = cleaning_history.list_visits(db, PROPERTY_ID)
        assert visits[0]["stats"] == {"total": 2, "completed": 1, "percentage": 50}

    def test_no_visits(self, db):
        assert cleaning_history.list_visits(db, PROPERTY_ID) == []
