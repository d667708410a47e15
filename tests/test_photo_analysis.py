import asyncio

import pytest

from qctrack.errors import NotFoundError
from qctrack.schemas.analysis import (
    BoundingBox,
    DefectDetection,
    EnvironmentalFactors,
    MaterialAnalysis,
    Measurements,
)
from qctrack.services.photo_analysis import PhotoAnalysisEngine, calculate_quality_score

from .conftest import FixedRandom, make_photo


def _defect(defect_type="crack", severity="medium", measurements=None) -> DefectDetection:
    return DefectDetection(
        type=defect_type,
        severity=severity,
        confidence=0.9,
        bounding_box=BoundingBox(x=0, y=0, width=10, height=10),
        measurements=measurements,
    )


class TestAnalyzePhoto:
    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_analysis(self, always_detect):
        engine = PhotoAnalysisEngine(rng=always_detect, latency_seconds=0.01)
        photo = make_photo()

        first, second, third = await asyncio.gather(
            engine.analyze_photo(photo),
            engine.analyze_photo(photo),
            engine.analyze_photo(photo),
        )

        assert engine.runs == 1
        assert first is second is third
        assert engine.get_analysis(photo.id) is first
        assert not engine.is_processing(photo.id)

    @pytest.mark.asyncio
    async def test_detects_job_type_patterns(self, always_detect):
        engine = PhotoAnalysisEngine(rng=always_detect)

        result = await engine.analyze_photo(make_photo(job_type="concrete"))

        assert [d.type for d in result.defects] == ["crack", "spalling"]
        assert all(d.confidence == pytest.approx(0.997) for d in result.defects)
        assert result.quality_score == pytest.approx(0.8)
        assert result.recommendations == [
            "Document crack width and length",
            "Monitor for progression",
            "Remove loose material",
            "Assess underlying reinforcement",
        ]

    @pytest.mark.asyncio
    async def test_no_detections_gives_full_score(self, never_detect):
        engine = PhotoAnalysisEngine(rng=never_detect)

        result = await engine.analyze_photo(make_photo(job_type="steel"))

        assert result.defects == []
        assert result.quality_score == 1.0
        assert result.recommendations == []

    @pytest.mark.asyncio
    async def test_unknown_job_type_falls_back_to_job_number(self, always_detect):
        patterns = {"J-77": [{"type": "corrosion", "confidence": 0.8, "severity": "low",
                              "bounding_box": {"x": 1, "y": 1, "width": 1, "height": 1}}]}
        engine = PhotoAnalysisEngine(rng=always_detect, patterns=patterns)

        result = await engine.analyze_photo(make_photo(job_type="masonry", job_number="J-77"))

        assert [d.type for d in result.defects] == ["corrosion"]

    @pytest.mark.asyncio
    async def test_failure_is_shared_and_clears_in_flight(self, always_detect, monkeypatch):
        engine = PhotoAnalysisEngine(rng=always_detect)
        calls = []

        async def broken(photo):
            calls.append(photo.id)
            await asyncio.sleep(0)
            raise RuntimeError("model offline")

        monkeypatch.setattr(engine, "_perform_analysis", broken)
        photo = make_photo()

        results = await asyncio.gather(
            engine.analyze_photo(photo), engine.analyze_photo(photo), return_exceptions=True
        )

        assert len(calls) == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert not engine.is_processing(photo.id)
        assert engine.get_analysis(photo.id) is None

    @pytest.mark.asyncio
    async def test_cancelled_first_caller_does_not_abort_analysis(self, always_detect):
        engine = PhotoAnalysisEngine(rng=always_detect, latency_seconds=0.05)
        photo = make_photo()

        first = asyncio.ensure_future(engine.analyze_photo(photo))
        await asyncio.sleep(0)
        waiter = asyncio.ensure_future(engine.analyze_photo(photo))
        await asyncio.sleep(0)
        first.cancel()

        result = await waiter

        assert first.cancelled()
        assert engine.runs == 1
        assert engine.get_analysis(photo.id) is result
        assert not engine.is_processing(photo.id)

    @pytest.mark.asyncio
    async def test_abandoned_analysis_still_completes(self, always_detect):
        engine = PhotoAnalysisEngine(rng=always_detect, latency_seconds=0.05)
        photo = make_photo()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(engine.analyze_photo(photo), timeout=0.001)
        assert engine.is_processing(photo.id)

        await asyncio.sleep(0.1)

        assert engine.get_analysis(photo.id) is not None
        assert not engine.is_processing(photo.id)


class TestRecommendations:
    def test_unique_and_size_based(self):
        engine = PhotoAnalysisEngine(rng=FixedRandom(0.0))
        large_deep = Measurements(area=150, depth=60)

        recs = engine.generate_recommendations(
            [_defect(), _defect(), _defect("crack", "high", large_deep)]
        )

        assert recs == [
            "Document crack width and length",
            "Monitor for progression",
            "Immediate structural assessment required",
            "Large affected area - consider full section repair",
            "Deep defect detected - structural review required",
        ]


class TestQualityScore:
    def test_clamped_to_zero(self):
        defects = [_defect() for _ in range(12)]
        material = MaterialAnalysis(type="concrete", condition="poor", confidence=0.5)
        environment = EnvironmentalFactors(lighting="poor")

        assert calculate_quality_score(defects, material, environment) == 0.0

    def test_penalties(self):
        material = MaterialAnalysis(type="steel", condition="degraded", confidence=0.5)
        environment = EnvironmentalFactors(lighting="poor")

        assert calculate_quality_score([_defect()], material, environment) == pytest.approx(0.6)


class TestCompareWithPrevious:
    @pytest.mark.asyncio
    async def test_unanalyzed_photo_raises(self, always_detect):
        engine = PhotoAnalysisEngine(rng=always_detect)
        analyzed = make_photo()
        await engine.analyze_photo(analyzed)

        with pytest.raises(NotFoundError):
            engine.compare_with_previous("never-analyzed", analyzed.id)
        with pytest.raises(NotFoundError):
            engine.compare_with_previous(analyzed.id, "never-analyzed")

    @pytest.mark.asyncio
    async def test_verdicts(self, always_detect):
        engine = PhotoAnalysisEngine(rng=always_detect)
        steel = make_photo(job_type="steel")
        concrete = make_photo(job_type="concrete")
        await engine.analyze_photo(steel)
        await engine.analyze_photo(concrete)

        degraded = engine.compare_with_previous(concrete.id, steel.id)
        improved = engine.compare_with_previous(steel.id, concrete.id)
        same = engine.compare_with_previous(steel.id, steel.id)

        assert degraded.severity == "degraded"
        assert degraded.changes == ["Defect count changed from 1 to 2"]
        assert improved.severity == "improved"
        assert same.severity == "unchanged"
        assert same.changes == []
