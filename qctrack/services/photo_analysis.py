"""
Photo analysis engine.

Detection is a stand-in for real inference: a static per-job-type pattern
table filtered by a random source. The random source is injectable so tests
can make detection deterministic.

Requests for a photo that is already being analysed are coalesced onto the
in-flight task, so every caller receives the same AnalysisResult object. The
task runs to completion even when every caller stops waiting for it.
"""
import asyncio
import math
import random
from typing import Dict, Iterable, List, Optional

import structlog

from ..errors import NotFoundError
from ..schemas.analysis import (
    AnalysisResult,
    BoundingBox,
    ComparisonResult,
    DefectDetection,
    EnvironmentalFactors,
    MaterialAnalysis,
    Measurements,
)
from ..schemas.media import PhotoAttachment


logger = structlog.get_logger(__name__)


# job type -> pattern templates
DEFAULT_DEFECT_PATTERNS: Dict[str, List[dict]] = {
    "concrete": [
        {
            "type": "crack",
            "confidence": 0.9,
            "severity": "medium",
            "bounding_box": {"x": 100, "y": 150, "width": 50, "height": 10},
        },
        {
            "type": "spalling",
            "confidence": 0.85,
            "severity": "high",
            "bounding_box": {"x": 200, "y": 300, "width": 100, "height": 100},
        },
    ],
    "steel": [
        {
            "type": "corrosion",
            "confidence": 0.88,
            "severity": "medium",
            "bounding_box": {"x": 150, "y": 200, "width": 75, "height": 75},
        },
    ],
}

LARGE_AREA_THRESHOLD = 100
DEEP_DEFECT_THRESHOLD = 50
QUALITY_CHANGE_THRESHOLD = 0.1


def base_recommendations(defect_type: str, severity: str) -> List[str]:
    recs: List[str] = []
    if defect_type == "crack":
        recs += ["Document crack width and length", "Monitor for progression"]
        if severity == "high":
            recs.append("Immediate structural assessment required")
    elif defect_type == "spalling":
        recs += ["Remove loose material", "Assess underlying reinforcement"]
    elif defect_type == "corrosion":
        recs += ["Clean affected area", "Apply rust inhibitor"]
    return recs


def size_based_recommendations(measurements: Optional[Measurements]) -> List[str]:
    recs: List[str] = []
    if measurements is None:
        return recs
    if measurements.area is not None and measurements.area > LARGE_AREA_THRESHOLD:
        recs.append("Large affected area - consider full section repair")
    if measurements.depth is not None and measurements.depth > DEEP_DEFECT_THRESHOLD:
        recs.append("Deep defect detected - structural review required")
    return recs


def calculate_quality_score(
    defects: List[DefectDetection],
    material: MaterialAnalysis,
    environment: EnvironmentalFactors,
) -> float:
    score = 1.0 - len(defects) * 0.1
    if material.condition != "acceptable":
        score -= 0.2
    if environment.lighting == "poor":
        score -= 0.1
    return max(0.0, min(1.0, score))


class PhotoAnalysisEngine:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        patterns: Optional[Dict[str, List[dict]]] = None,
        latency_seconds: float = 0.0,
    ) -> None:
        self._rng = rng or random.Random()
        self._patterns = patterns if patterns is not None else DEFAULT_DEFECT_PATTERNS
        self._latency = latency_seconds
        self._history: Dict[str, AnalysisResult] = {}
        self._in_flight: Dict[str, "asyncio.Task[AnalysisResult]"] = {}
        self.runs = 0  # number of analyses actually performed

    def is_processing(self, photo_id: str) -> bool:
        return photo_id in self._in_flight

    def get_analysis(self, photo_id: str) -> Optional[AnalysisResult]:
        return self._history.get(photo_id)

    async def analyze_photo(self, photo: PhotoAttachment) -> AnalysisResult:
        task = self._in_flight.get(photo.id)
        if task is None:
            task = asyncio.create_task(self._analyze_and_store(photo))
            self._in_flight[photo.id] = task
        # shield: a caller that gives up must not cancel the shared analysis
        return await asyncio.shield(task)

    async def _analyze_and_store(self, photo: PhotoAttachment) -> AnalysisResult:
        try:
            result = await self._perform_analysis(photo)
            self._history[photo.id] = result
            return result
        finally:
            self._in_flight.pop(photo.id, None)

    def generate_recommendations(self, defects: Iterable[DefectDetection]) -> List[str]:
        recommendations: Dict[str, None] = {}
        for defect in defects:
            for rec in base_recommendations(defect.type, defect.severity):
                recommendations[rec] = None
            for rec in size_based_recommendations(defect.measurements):
                recommendations[rec] = None
        return list(recommendations)

    def compare_with_previous(self, photo_id: str, previous_photo_id: str) -> ComparisonResult:
        current = self._history.get(photo_id)
        if current is None:
            raise NotFoundError("Analysis", photo_id)
        previous = self._history.get(previous_photo_id)
        if previous is None:
            raise NotFoundError("Analysis", previous_photo_id)

        changes: List[str] = []
        score = 0

        current_count = len(current.defects)
        previous_count = len(previous.defects)
        if current_count != previous_count:
            changes.append(f"Defect count changed from {previous_count} to {current_count}")
            score += 1 if current_count > previous_count else -1

        quality_diff = current.quality_score - previous.quality_score
        if abs(quality_diff) > QUALITY_CHANGE_THRESHOLD:
            direction = "improved" if quality_diff > 0 else "decreased"
            changes.append(f"Quality score {direction} by {abs(quality_diff):.2f}")
            score -= int(math.copysign(1, quality_diff))

        if score > 0:
            verdict = "degraded"
        elif score < 0:
            verdict = "improved"
        else:
            verdict = "unchanged"
        return ComparisonResult(changes=changes, severity=verdict)

    async def _perform_analysis(self, photo: PhotoAttachment) -> AnalysisResult:
        self.runs += 1
        # Yield at least once so concurrent callers observe the in-flight marker
        await asyncio.sleep(self._latency)

        defects = self._detect_defects(photo)
        material = MaterialAnalysis(type="concrete", condition="acceptable", confidence=0.85)
        environment = EnvironmentalFactors(
            lighting=photo.metadata.lighting or "adequate",
            weather="clear",
            temperature=72,
            humidity=45,
        )
        result = AnalysisResult(
            photo_id=photo.id,
            defects=defects,
            material_analysis=material,
            environmental_factors=environment,
            quality_score=calculate_quality_score(defects, material, environment),
            recommendations=self.generate_recommendations(defects),
        )
        logger.info(
            "photo_analyzed",
            photo_id=photo.id,
            defects=len(defects),
            quality_score=result.quality_score,
        )
        return result

    def _detect_defects(self, photo: PhotoAttachment) -> List[DefectDetection]:
        patterns = self._patterns.get(photo.job_type or "", None)
        if patterns is None:
            patterns = self._patterns.get(photo.job_number, [])
        defects = []
        for pattern in patterns:
            if self._rng.random() > 0.5:
                defects.append(
                    DefectDetection(
                        type=pattern["type"],
                        severity=pattern["severity"],
                        bounding_box=BoundingBox(**pattern["bounding_box"]),
                        measurements=Measurements(**pattern["measurements"]) if pattern.get("measurements") else None,
                        material_type=pattern.get("material_type"),
                        confidence=0.7 + self._rng.random() * 0.3,
                    )
                )
        return defects
