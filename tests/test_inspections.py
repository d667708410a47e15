import pytest

from qctrack.schemas.inspections import ChecklistItem
from qctrack.services.inspections import InspectionStore
from qctrack.services.photo_analysis import PhotoAnalysisEngine

from .conftest import DownCollaboration, DownNotifications, FixedRandom, make_photo


class StaticPhotos:
    def __init__(self, *photos):
        self._photos = {p.id: p for p in photos}

    async def get_photo(self, photo_id):
        return self._photos.get(photo_id)


class FlakyEngine:
    """Fails while `broken` is set, then delegates to a deterministic engine."""

    def __init__(self):
        self.broken = True
        self.calls = 0
        self._engine = PhotoAnalysisEngine(rng=FixedRandom(0.99))

    def get_analysis(self, photo_id):
        return self._engine.get_analysis(photo_id)

    async def analyze_photo(self, photo):
        self.calls += 1
        if self.broken:
            raise RuntimeError("model offline")
        return await self._engine.analyze_photo(photo)


def _make_store(notifications, collaboration, **kwargs) -> InspectionStore:
    return InspectionStore(notifications=notifications, collaboration=collaboration, **kwargs)


class TestDeficiencies:
    @pytest.mark.asyncio
    async def test_crack_in_beam(self, notifications, collaboration):
        store = _make_store(notifications, collaboration)

        deficiency = await store.add_deficiency("Crack in beam", "high", "Zone A")

        assert deficiency.status == "open"
        assert store.deficiencies == [deficiency]
        alerts = [n for n in notifications.notifications if n.title == "New Deficiency"]
        assert len(alerts) == 1
        assert alerts[0].severity == "critical"
        assert alerts[0].related_id == deficiency.id
        activities = [a for a in collaboration.activities if a.type == "deficiency"]
        assert len(activities) == 1
        assert activities[0].entity_id == deficiency.id
        assert activities[0].data == {"action": "created", "severity": "high"}

    @pytest.mark.asyncio
    async def test_location_defaults_to_current(self):
        store = InspectionStore()
        store.set_location("Level 2 - Grid C")

        deficiency = await store.add_deficiency("Missing anchor", "low", "")

        assert deficiency.location == "Level 2 - Grid C"
        assert store.current_location == "Level 2 - Grid C"

    @pytest.mark.asyncio
    async def test_photo_analysis_appended(self):
        photo = make_photo(job_type="concrete")
        store = InspectionStore(
            photos=StaticPhotos(photo), analysis=PhotoAnalysisEngine(rng=FixedRandom(0.99))
        )

        deficiency = await store.add_deficiency("Slab defect", "medium", "Deck", photos=[photo.id])

        assert deficiency.description == (
            "Slab defect\nAI Analysis: crack detected (99.7% confidence), "
            "spalling detected (99.7% confidence)"
        )

    @pytest.mark.asyncio
    async def test_failed_analysis_is_recorded_and_retried(self, notifications):
        photo = make_photo()
        engine = FlakyEngine()
        store = InspectionStore(
            notifications=notifications,
            photos=StaticPhotos(photo),
            analysis=engine,
            analysis_retry_attempts=2,
        )

        deficiency = await store.add_deficiency("Spall", "medium", "Deck", photos=[photo.id])

        assert engine.calls == 3
        assert store.deficiencies == [deficiency]
        assert deficiency.description == "Spall"
        assert [(m.deficiency_id, m.photo_id) for m in store.missed_analyses] == [(deficiency.id, photo.id)]
        assert any(n.title == "New Deficiency" for n in notifications.notifications)

        engine.broken = False
        resolved = await store.retry_missed_analyses()

        assert resolved == 1
        assert store.missed_analyses == []
        assert "AI Analysis: crack detected" in deficiency.description

    @pytest.mark.asyncio
    async def test_update_status_and_assign(self, notifications, collaboration):
        store = _make_store(notifications, collaboration)
        deficiency = await store.add_deficiency("Loose bolt", "medium", "Bay 3")

        updated = store.update_status(deficiency.id, "resolved", comment="Torqued to spec")
        assigned = store.assign(deficiency.id, "bob")

        assert updated.status == "resolved"
        assert store.deficiencies_by_status("resolved") == [deficiency]
        comments = collaboration.comments_for(deficiency.id)
        assert [(c.text, c.user_id) for c in comments] == [("Torqued to spec", "system")]
        assert assigned.assigned_to == "bob"
        assert collaboration.activities[0].type == "assignment"
        assert store.update_status("missing", "resolved") is None
        assert store.assign("missing", "bob") is None

    @pytest.mark.asyncio
    async def test_failed_side_effects_keep_the_deficiency(self):
        store = _make_store(DownNotifications(), DownCollaboration())

        deficiency = await store.add_deficiency("Crack in beam", "high", "Zone A")
        updated = store.update_status(deficiency.id, "in-progress", comment="Crew dispatched")
        assigned = store.assign(deficiency.id, "bob")

        assert store.deficiencies == [deficiency]
        assert updated.status == "in-progress"
        assert assigned.assigned_to == "bob"


class TestChecklist:
    def test_complete_is_idempotent(self):
        store = InspectionStore()
        item = store.add_checklist_item("Verify rebar cover", reference="ACI 318")

        assert store.complete_checklist_item(item.id)
        assert not store.complete_checklist_item(item.id)
        assert not store.complete_checklist_item("missing")
        assert store.checklist.completed_items == [item.id]

    def test_apply_template(self):
        store = InspectionStore()
        events = []
        store.subscribe(events.append)

        added = store.apply_checklist_template(
            [ChecklistItem(description="a"), ChecklistItem(description="b", required=False)]
        )

        assert [i.description for i in store.checklist.items] == ["a", "b"]
        assert added == store.checklist.items
        assert [e.key for e in events] == ["inspection.checklist"]

    def test_reapplying_template_skips_existing_items(self):
        store = InspectionStore()
        template = [ChecklistItem(description="a"), ChecklistItem(description="b")]

        store.apply_checklist_template(template)
        added = store.apply_checklist_template(template + [ChecklistItem(description="c")])

        assert [i.description for i in store.checklist.items] == ["a", "b", "c"]
        assert [i.description for i in added] == ["c"]
