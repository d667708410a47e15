from typing import List, Optional

from pydantic import BaseModel, Field

from .analysis import BoundingBox
from .base import Record


class GpsCoordinates(BaseModel):
    lat: float
    lng: float


class Dimensions(BaseModel):
    width: int
    height: int


class PhotoMetadata(BaseModel):
    device_info: str = "unknown"
    gps_coordinates: Optional[GpsCoordinates] = None
    compass: Optional[float] = None  # degrees
    dimensions: Optional[Dimensions] = None
    lighting: Optional[str] = None


class DetectedDefect(BaseModel):
    type: str
    confidence: float
    location: BoundingBox


class PhotoAnalysisSummary(BaseModel):
    defects: List[DetectedDefect] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    quality_score: Optional[float] = None


class PhotoAttachment(Record):
    image_url: str
    description: str = ""
    location: str
    job_number: str
    job_type: Optional[str] = None
    deficiency_id: Optional[str] = None
    inspection_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    metadata: PhotoMetadata = Field(default_factory=PhotoMetadata)
    analysis: Optional[PhotoAnalysisSummary] = None


class PhotoCreate(BaseModel):
    image_url: str
    description: str = ""
    location: str
    job_number: str
    job_type: Optional[str] = None
    deficiency_id: Optional[str] = None
    inspection_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    metadata: PhotoMetadata = Field(default_factory=PhotoMetadata)


class TagRequest(BaseModel):
    tag: str


class DescriptionRequest(BaseModel):
    description: str
