from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ContentType = Literal["document", "image"]


class ScanDocumentResponse(BaseModel):
    id: str
    scan_id: str
    position: int
    file_path: str
    file_name: str
    file_size: int
    file_type: Optional[str] = None
    extracted_text: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_tags: Optional[List[str]] = None
    category: Optional[str] = None
    is_sensitive: bool = False
    analysis_metadata: Optional[Dict[str, Any]] = None
    analysis_details: Optional[Dict[str, Any]] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScanResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    content_type: ContentType
    file_path: Optional[str] = None
    extracted_text: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_tags: Optional[List[str]] = None
    category: Optional[str] = None
    is_sensitive: bool = False
    analysis_metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScanDetailResponse(ScanResponse):
    documents: List[ScanDocumentResponse] = []


class AnalysisEnvelope(BaseModel):
    """Success envelope returned by the process-scan function."""

    file_path: Optional[str] = None
    extracted_text: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_tags: Optional[List[str]] = None
    category: Optional[str] = None
    is_sensitive: Optional[bool] = None
    translation: Optional[Dict[str, Any]] = None
    enhancement: Optional[Dict[str, Any]] = None
    smart_insights: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    success: bool = False
    timestamp: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def details(self) -> Optional[Dict[str, Any]]:
        blocks = {
            "translation": self.translation,
            "enhancement": self.enhancement,
            "smartInsights": self.smart_insights,
        }
        blocks = {key: value for key, value in blocks.items() if value is not None}
        return blocks or None


class ProcessItemResult(BaseModel):
    document_id: str
    file_name: str
    status: Literal["success", "failure"]
    reason: Optional[str] = None


class ProcessResponse(BaseModel):
    scan_id: str
    results: List[ProcessItemResult]
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Optional[dict] = None
