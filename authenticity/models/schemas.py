from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParaphraseStyle(str, Enum):
    DEFAULT = "default"
    FORMAL = "formal"
    CASUAL = "casual"
    SIMPLE = "simple"


# --- Upstream results ---

class DetectionResult(CamelModel):
    ai_score: float
    justification: str = ""
    high_confidence_sentences: List[str] = Field(default_factory=list)
    medium_confidence_sentences: List[str] = Field(default_factory=list)

    def tiers(self):
        return [("high", self.high_confidence_sentences), ("medium", self.medium_confidence_sentences)]


class SourceMatch(CamelModel):
    url: str = "#"
    snippet: str = "No snippet available"
    match_percent: float = 0.0


class PlagiarismResult(CamelModel):
    plagiarism_score: float = 0.0
    sources: List[SourceMatch] = Field(default_factory=list)
    simulated: bool = False


class ParaphraseResult(CamelModel):
    paraphrased_text: str
    style: ParaphraseStyle = ParaphraseStyle.DEFAULT


# --- Requests ---
# Text fields are optional so that empty input is reported by the services
# with the same {"error": ...} shape as every other failure.

class DetectRequest(CamelModel):
    text: Optional[str] = None
    submission_id: Optional[str] = None


class ParaphraseRequest(CamelModel):
    text_to_paraphrase: Optional[str] = None
    style: Optional[str] = None
    submission_id: Optional[str] = None


class PlagiarismRequest(CamelModel):
    text_to_check: Optional[str] = None
    submission_id: Optional[str] = None


class HighlightRequest(CamelModel):
    text: str = ""
    high_confidence_sentences: List[str] = Field(default_factory=list)
    medium_confidence_sentences: List[str] = Field(default_factory=list)


class ReportRequest(CamelModel):
    text: str
    result: DetectionResult


# --- Responses ---

class DetectionResponse(DetectionResult):
    highlighted_html: str
    confidence_label: str
    submission_id: Optional[str] = None


class ParaphraseResponse(ParaphraseResult):
    submission_id: Optional[str] = None


class PlagiarismResponse(PlagiarismResult):
    match_label: str
    submission_id: Optional[str] = None


class HighlightResponse(CamelModel):
    highlighted_html: str


class ExtractedText(CamelModel):
    text: str
    filename: str


class ErrorResponse(CamelModel):
    error: str
    block_reason: Optional[str] = None
