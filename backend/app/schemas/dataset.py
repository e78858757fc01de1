# File: backend/app/schemas/dataset.py
# Version: v0.1.0
"""
Pydantic schemas for the dataset import / management endpoints.

Field names are camelCase to match the dataset JSON shape used everywhere else.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, constr


class ParserSummaryOut(BaseModel):
    format: str
    displayName: str
    description: str = ""


class ParseFileRequest(BaseModel):
    """Request payload for parsing (and storing) an annotation file."""
    projectId: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="Opaque project identifier, passed through unchanged."
    )
    filePath: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="Path of the annotation file on the server.", examples=["/data/sample.gb"]
    )
    formatHint: Optional[Literal["genbank", "gff3", "json", "csv"]] = Field(
        None, description="Overrides detection by file extension."
    )


class ParseFileResponse(BaseModel):
    dataset: Dict[str, Any] = Field(..., description="Stored dataset summary.")
    warnings: List[str] = Field(default_factory=list)
    preview: List[Any] = Field(default_factory=list, description="First few features.")


class RenameDatasetRequest(BaseModel):
    displayName: str = Field("", description="Blank resets the name to the file name.")


class FeatureStatesRequest(BaseModel):
    featureStates: Dict[str, Any] = Field(default_factory=dict)


class PlotTracksRequest(BaseModel):
    plotTracks: List[Any] = Field(default_factory=list)


class LinkTracksRequest(BaseModel):
    linkTracks: List[Any] = Field(default_factory=list)


class DensityPoint(BaseModel):
    position: float
    density: float


class DensityResponse(BaseModel):
    windowSize: int
    totalLength: float
    points: List[DensityPoint] = Field(default_factory=list)


class RenderResponse(BaseModel):
    totalFeatures: int = Field(..., ge=0)
    returned: int = Field(..., ge=0)
    features: List[Any] = Field(default_factory=list)
