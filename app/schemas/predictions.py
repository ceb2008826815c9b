from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ErrorOut(BaseModel):
    error: str


class QueuedOut(BaseModel):
    queued: bool = True
    message: str = "Prediction queued, try again later"


# --- Parsed upstream results (one model per known shape) ---


class LegacyResult(BaseModel):
    classification: list[float] = Field(default_factory=list)
    clusters: list[float] = Field(default_factory=list)


class ClusterProfileIn(BaseModel):
    members: float = 0
    label: str = ""


class PredictionRowIn(BaseModel):
    window_id: int | str | None = None
    class_id: int | str | None = None
    label: str = ""
    confidence: float = 0.0
    cluster_id: int | str | None = None


class RichSummaryIn(BaseModel):
    total_windows: int = 0
    dominant_workload_type: str = "Unknown"
    class_distribution: dict[str, float] = Field(default_factory=dict)


class Recommendation(BaseModel):
    action: str = ""
    reason: str = ""


class RichResult(BaseModel):
    summary: RichSummaryIn = Field(default_factory=RichSummaryIn)
    cluster_profiles: dict[str, ClusterProfileIn] = Field(default_factory=dict)
    predictions_preview: list[PredictionRowIn] = Field(default_factory=list)
    recommendation: Recommendation = Field(default_factory=Recommendation)
    message: str = ""


# --- View-model ---


class Distribution(BaseModel):
    labels: list[str]
    values: list[int | float]
    percentages: list[str]
    total: int | float


class ConfidenceBucket(BaseModel):
    label: str
    count: int


class ClusterRow(BaseModel):
    cluster_id: str
    members: int | float
    label: str


class ViewModel(BaseModel):
    shape: Literal["legacy", "rich"]

    # legacy shape
    classification: Distribution | None = None
    clusters: Distribution | None = None

    # rich shape
    total_windows: int = 0
    dominant_workload_type: str = "Unknown"
    class_distribution: Distribution | None = None
    cluster_profiles: list[ClusterRow] = Field(default_factory=list)
    cluster_distribution: Distribution | None = None
    average_confidence: float = 0.0
    confidence_buckets: list[ConfidenceBucket] = Field(default_factory=list)
    predictions_preview: list[PredictionRowIn] = Field(default_factory=list)
    preview_total: int = 0
    recommendation: Recommendation = Field(default_factory=Recommendation)
    message: str = ""
