"""
Pydantic Models for the Health Analysis API

This module defines the data structures (schemas) for the AI verdicts, the
extracted health analysis and the API response bodies. Field names are
snake_case in Python and camelCase on the wire, matching what the Gemini
prompts ask for and what the frontend consumes.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# ==============================================================================
# Base
# ==============================================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _lowercase(value):
    return value.strip().lower() if isinstance(value, str) else value


class GeminiModel(CamelModel):
    """Base for model output: a null field falls back to its default."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data):
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# ==============================================================================
# Classification
# ==============================================================================

class ClassificationVerdict(GeminiModel):
    """
    The classifier's decision on whether a document is health-related.

    Only the flag is trusted as given. Confidence is clamped to 0-100 and
    missing text fields take their defaults.
    """
    is_health_document: bool
    confidence: float = 50
    document_type: str = "Unknown"
    reason: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 50
        return min(max(number, 0.0), 100.0)

    @field_validator("document_type", "reason", mode="before")
    @classmethod
    def stringify(cls, value):
        return value if isinstance(value, str) else str(value)

    @classmethod
    def unverified(cls) -> "ClassificationVerdict":
        """Verdict used when the classifier reply cannot be read."""
        return cls(
            is_health_document=True,
            confidence=50,
            document_type="Unknown",
            reason="Could not verify document type",
        )


# ==============================================================================
# Health Analysis Result
# ==============================================================================

class PatientInfo(GeminiModel):
    name: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    id: Optional[str] = None

    @field_validator("age", "id", mode="before")
    @classmethod
    def stringify(cls, value):
        return str(value) if isinstance(value, (int, float)) else value


class Finding(GeminiModel):
    """Defines the structure for a single measured parameter."""
    parameter: str = Field(..., json_schema_extra={"example": "Hemoglobin"})
    value: str = Field("", json_schema_extra={"example": "15.2"})
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    status: Literal["normal", "low", "high", "critical"]
    category: Optional[str] = None
    clinical_significance: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _lowercase(value)

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, value):
        return str(value) if isinstance(value, (int, float)) else value


class AbnormalValue(GeminiModel):
    """A finding outside its expected range, with severity and guidance."""
    parameter: str
    value: str = ""
    expected_range: str = ""
    severity: Literal["mild", "moderate", "severe"]
    meaning: Optional[str] = None
    possible_causes: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, value):
        return _lowercase(value)

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, value):
        return str(value) if isinstance(value, (int, float)) else value


RecommendationLabel = Literal["Immediate Actions", "Lifestyle Modifications", "Follow-up Care"]


class RecommendationCategory(GeminiModel):
    category: RecommendationLabel
    items: List[str] = Field(default_factory=list)


class RiskAssessment(GeminiModel):
    level: Literal["low", "moderate", "high"]
    factors: List[str] = Field(default_factory=list)
    follow_up_required: bool = False
    follow_up_timing: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value):
        return _lowercase(value)


class HealthAnalysisResult(GeminiModel):
    """The structured record extracted from an accepted health document."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = ""
    document_type: str = ""
    date: Optional[str] = None
    patient_info: Optional[PatientInfo] = None
    findings: List[Finding] = Field(default_factory=list)
    abnormal_values: List[AbnormalValue] = Field(default_factory=list)
    summary: str = ""
    detailed_analysis: str = ""
    medical_context: str = ""
    # Categorized (current prompt) or a flat list of strings (older records)
    recommendations: Union[List[RecommendationCategory], List[str]] = Field(default_factory=list)
    risk_assessment: Optional[RiskAssessment] = None
    confidence: float = 0
    disclaimer: str = ""

    @property
    def recommendation_format(self) -> Literal["categorized", "legacy"]:
        if self.recommendations and isinstance(self.recommendations[0], str):
            return "legacy"
        return "categorized"

    def recommendation_items(self) -> List[str]:
        """All recommendation texts regardless of the stored format."""
        if self.recommendation_format == "legacy":
            return list(self.recommendations)
        return [item for group in self.recommendations for item in group.items]


# ==============================================================================
# API Envelopes
# ==============================================================================

class TokenReward(CamelModel):
    earned: int
    total: int
    is_new_user: bool


class AnalysisSuccessResponse(CamelModel):
    """The response body of a completed /analyze request."""
    success: Literal[True] = True
    analysis: HealthAnalysisResult
    file_name: str = Field(..., json_schema_extra={"example": "blood_test.pdf"})
    file_size: int
    file_type: str
    token_reward: TokenReward


class AnalysisFailureResponse(CamelModel):
    """The response body of any failed request."""
    success: Literal[False] = False
    kind: str = Field(..., description="Machine-oriented error kind.")
    error: str
    details: Optional[str] = None


class ReadinessResponse(CamelModel):
    status: str
    message: str
    supported_file_types: List[str]
    max_file_size: str
    response_format: str


# ==============================================================================
# Dashboard
# ==============================================================================

class DashboardUser(CamelModel):
    wallet_address: str
    tokens: int
    total_analyses: int
    last_analysis_date: Optional[datetime] = None
    member_since: datetime


class DashboardReport(CamelModel):
    id: str
    file_name: str
    file_size: int
    file_type: str
    format: Literal["json"] = "json"
    created_at: datetime
    updated_at: datetime
    # Older records may not carry every field
    analysis_data: Optional[dict] = None


class DashboardStats(CamelModel):
    total_reports: int
    reports_this_month: int
    reports_this_week: int


class DashboardData(CamelModel):
    user: DashboardUser
    reports: List[DashboardReport]
    stats: DashboardStats


class DashboardResponse(CamelModel):
    success: bool
    data: Optional[DashboardData] = None
    error: Optional[str] = None
    details: Optional[str] = None
