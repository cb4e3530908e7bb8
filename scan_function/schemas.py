import json
from typing import Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .exceptions import AnalysisParseError
from .logger import get_logger

logger = get_logger(__name__)

Category = Literal["passport", "invoice", "receipt", "photo", "document", "contract", "form", "certificate", "other"]
ImageQuality = Literal["excellent", "good", "fair", "poor"]
Readability = Literal["high", "medium", "low"]
DocumentStructure = Literal["well-organized", "partially-structured", "unstructured"]
Number = Union[StrictInt, StrictFloat]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")


class LenientModel(CamelModel):
    """Fields whose value fails validation are nulled out instead of failing the whole model."""

    @field_validator("*", mode="wrap")
    @classmethod
    def null_on_mismatch(cls, value: Any, handler, info: ValidationInfo):
        try:
            return handler(value)
        except ValidationError:
            logger.warning(f"Discarding invalid value for {cls.__name__}.{info.field_name}: {value!r}")
            return None


class Translation(LenientModel):
    original_language: Optional[StrictStr] = None
    translated_text: Optional[StrictStr] = None
    confidence: Optional[Number] = None


class Enhancement(LenientModel):
    image_quality: Optional[ImageQuality] = None
    suggestions: Optional[List[StrictStr]] = None
    readability: Optional[Readability] = None


class SmartInsights(LenientModel):
    key_points: Optional[List[StrictStr]] = None
    action_items: Optional[List[StrictStr]] = None
    entities: Optional[List[StrictStr]] = None
    document_structure: Optional[DocumentStructure] = None


class AnalysisMetadata(LenientModel):
    language: Optional[StrictStr] = None
    confidence: Optional[Number] = None
    document_type: Optional[StrictStr] = None
    processing_time: Optional[StrictStr] = None
    text_regions: Optional[StrictInt] = None
    estimated_words: Optional[StrictInt] = None


class AnalysisResult(LenientModel):
    extracted_text: Optional[StrictStr] = None
    ai_summary: Optional[StrictStr] = None
    ai_tags: Optional[List[StrictStr]] = None
    category: Optional[Category] = None
    is_sensitive: Optional[StrictBool] = None
    translation: Optional[Translation] = None
    enhancement: Optional[Enhancement] = None
    smart_insights: Optional[SmartInsights] = None
    metadata: Optional[AnalysisMetadata] = None


class ScanRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    file_path: Optional[str] = None
    content_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


def parse_analysis(content: Any) -> dict:
    """Decode the model's message content into analysis fields.

    Only keys present in the reply are returned; known keys are validated,
    unknown keys, top-level or inside a block, are passed through as-is.
    """
    try:
        raw = json.loads(content)
    except (TypeError, ValueError) as e:
        logger.error(f"JSON parse error: {str(e)}")
        logger.error(f"Raw content: {content!r}")
        raise AnalysisParseError() from e

    if not isinstance(raw, dict):
        logger.error(f"Expected a JSON object, got {type(raw).__name__}")
        raise AnalysisParseError()

    validated = AnalysisResult.model_validate(raw).model_dump(by_alias=True, exclude_unset=True)
    analysis = dict(raw)
    for key, value in validated.items():
        # Unknown keys inside a block survive alongside the validated ones
        if isinstance(value, dict) and isinstance(raw.get(key), dict):
            value = {**raw[key], **value}
        analysis[key] = value
    return analysis
