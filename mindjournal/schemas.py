from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- PIPELINE VALUES ---

class PriorExchange(BaseModel):
    """One past turn of the chat, as sent by the client."""
    user: str
    ai: str

    model_config = ConfigDict(frozen=True)


class AnalysisResult(BaseModel):
    # mood is None only for a validation-gate rejection; advice then carries
    # the clarification request instead of supportive content.
    mood: Optional[str] = None
    summary: Optional[str] = None
    advice: str

    model_config = ConfigDict(frozen=True)

    @property
    def is_rejection(self) -> bool:
        return self.mood is None


class ModelAnalysis(BaseModel):
    """
    Strict shape a model answer must have before it is trusted.
    All three fields must be present, strings, and not blank.
    """
    mood: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    advice: str = Field(..., min_length=1)

    model_config = ConfigDict(strict=True, str_strip_whitespace=True)


# --- REQUEST MODELS ---

class AnalyzeRequest(BaseModel):
    text: Optional[str] = None
    # None selects single-shot journal analysis; a list (even empty) selects chat.
    history: Optional[List[PriorExchange]] = None


class JournalCreateRequest(BaseModel):
    text: str = Field(..., max_length=50000)
    mood: str
    summary: str
    advice: str

    @field_validator("text", "mood", "summary", "advice")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value


# --- RESPONSE MODELS ---

class JournalEntry(BaseModel):
    id: str
    user_id: str
    text: str
    mood: str
    summary: str
    advice: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimelinePoint(BaseModel):
    date: str
    count: int


class WellnessStats(BaseModel):
    total_count: int
    current_streak: int
    avg_per_week: float
    dominant_mood: str
    mood_counts: Dict[str, int] = Field(default_factory=dict)
    daily_counts: Dict[str, int] = Field(default_factory=dict)
    timeline: List[TimelinePoint] = Field(default_factory=list)
