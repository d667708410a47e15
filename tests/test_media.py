import pytest

from qctrack.services.media import MediaStore
from qctrack.services.photo_analysis import PhotoAnalysisEngine

from .conftest import DownNotifications, make_photo_create


class BrokenEngine:
    async def analyze_photo(self, photo):
        raise RuntimeError("model offline")


def _titles(notifications):
    return [n.title for n in notifications.notifications]


class TestMediaStore:
    @pytest.mark.asyncio
    async def test_photo_visible_before_analysis(self, notifications, always_detect):
        media = MediaStore(notifications, PhotoAnalysisEngine(rng=always_detect))

        photo = await media.add_photo(make_photo_create())

        assert media.photos == [photo]
        assert photo.analysis is None
        assert media.is_pending(photo.id)
        assert _titles(notifications) == ["New Photo Added"]

        await media.wait_for_analysis(photo.id)
        assert photo.analysis is not None

    @pytest.mark.asyncio
    async def test_get_photo_waits_for_analysis(self, notifications, always_detect):
        media = MediaStore(notifications, PhotoAnalysisEngine(rng=always_detect))
        photo = await media.add_photo(make_photo_create())

        fetched = await media.get_photo(photo.id)

        assert fetched is photo
        assert not media.is_pending(photo.id)
        assert [d.type for d in fetched.analysis.defects] == ["crack", "spalling"]
        assert fetched.analysis.quality_score == pytest.approx(0.8)
        alert = notifications.notifications[0]
        assert alert.title == "Defects Detected"
        assert alert.severity == "critical"
        assert alert.related_id == photo.id

    @pytest.mark.asyncio
    async def test_clean_photo_raises_no_alert(self, notifications, never_detect):
        media = MediaStore(notifications, PhotoAnalysisEngine(rng=never_detect))
        photo = await media.add_photo(make_photo_create())

        await media.wait_for_analysis(photo.id)

        assert photo.analysis is not None
        assert photo.analysis.defects == []
        assert "Defects Detected" not in _titles(notifications)

    @pytest.mark.asyncio
    async def test_failed_analysis_keeps_photo(self, notifications):
        media = MediaStore(notifications, BrokenEngine())
        photo = await media.add_photo(make_photo_create())

        fetched = await media.get_photo(photo.id)

        assert fetched is photo
        assert fetched.analysis is None
        assert media.photos == [photo]

    @pytest.mark.asyncio
    async def test_without_engine(self):
        media = MediaStore()
        photo = await media.add_photo(make_photo_create())

        assert not media.is_pending(photo.id)
        assert await media.get_photo(photo.id) is photo
        assert await media.get_photo("missing") is None

    @pytest.mark.asyncio
    async def test_queries_and_edits(self):
        media = MediaStore()
        a = await media.add_photo(make_photo_create(deficiency_id="d1", tags=["rebar"]))
        b = await media.add_photo(make_photo_create(inspection_id="i1", job_number="J-2", location="Level 3"))

        assert media.by_deficiency("d1") == [a]
        assert media.by_inspection("i1") == [b]
        assert media.by_job("J-2") == [b]
        assert media.by_location("Zone A") == [a]
        assert media.by_tag("rebar") == [a]

        assert media.add_tag(b.id, "rebar")
        assert not media.add_tag(b.id, "rebar")
        assert not media.add_tag("missing", "rebar")
        assert media.by_tag("rebar") == [a, b]

        assert media.update_description(a.id, "South wall").description == "South wall"
        assert media.update_description("missing", "x") is None

    @pytest.mark.asyncio
    async def test_failed_alert_keeps_photo(self, always_detect):
        media = MediaStore(DownNotifications(), PhotoAnalysisEngine(rng=always_detect))

        photo = await media.add_photo(make_photo_create())
        stored = await media.get_photo(photo.id)

        assert media.photos == [photo]
        assert stored.analysis is not None
