from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .base import Record


class BoundingBox(BaseModel):
    x: float
    y: float
    width: float
    height: float


class Measurements(BaseModel):
    length: Optional[float] = None
    width: Optional[float] = None
    depth: Optional[float] = None
    area: Optional[float] = None


class DefectDetection(Record):
    type: str
    confidence: float
    bounding_box: BoundingBox
    severity: Literal["low", "medium", "high"]
    measurements: Optional[Measurements] = None
    material_type: Optional[str] = None
    suggested_actions: List[str] = Field(default_factory=list)


class MaterialAnalysis(BaseModel):
    type: str
    condition: str
    confidence: float


class EnvironmentalFactors(BaseModel):
    lighting: Literal["poor", "adequate", "good"] = "adequate"
    weather: Optional[str] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None


class AnalysisResult(BaseModel):
    photo_id: str
    defects: List[DefectDetection] = Field(default_factory=list)
    material_analysis: MaterialAnalysis
    environmental_factors: EnvironmentalFactors
    quality_score: float
    recommendations: List[str] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    changes: List[str] = Field(default_factory=list)
    severity: Literal["improved", "unchanged", "degraded"]
