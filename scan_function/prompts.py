import mimetypes
from datetime import datetime, timezone
from typing import List, Optional, get_args

from .schemas import Category, DocumentStructure, ImageQuality, Readability

CATEGORIES = get_args(Category)
IMAGE_QUALITIES = get_args(ImageQuality)
READABILITY_LEVELS = get_args(Readability)
DOCUMENT_STRUCTURES = get_args(DocumentStructure)

DEFAULT_MIME_TYPE = "image/jpeg"

SYSTEM_PROMPT_TEMPLATE = """You are an advanced AI assistant that provides comprehensive document and image analysis. Analyze the provided image/document and extract all relevant information.

Return your analysis in this exact JSON format:
{{
  "extractedText": "all visible text found in the image/document",
  "aiSummary": "intelligent summary highlighting key points and insights",
  "aiTags": ["relevant", "tags", "based", "on", "content"],
  "category": "{categories}",
  "isSensitive": false,
  "translation": {{
    "originalLanguage": "detected language",
    "translatedText": "english translation if not in english, otherwise null",
    "confidence": 0.95
  }},
  "enhancement": {{
    "imageQuality": "{qualities}",
    "suggestions": ["improvement suggestion 1", "improvement suggestion 2"],
    "readability": "{readability}"
  }},
  "smartInsights": {{
    "keyPoints": ["important point 1", "important point 2"],
    "actionItems": ["action 1", "action 2"],
    "entities": ["person names", "dates", "amounts", "locations"],
    "documentStructure": "{structures}"
  }},
  "metadata": {{
    "language": "detected language ISO code",
    "confidence": 0.95,
    "documentType": "specific document type",
    "processingTime": "{processing_time}",
    "textRegions": 1,
    "estimatedWords": 100
  }}
}}"""


def build_system_prompt(processing_time: Optional[str] = None) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        categories="|".join(CATEGORIES),
        qualities="|".join(IMAGE_QUALITIES),
        readability="|".join(READABILITY_LEVELS),
        structures="|".join(DOCUMENT_STRUCTURES),
        processing_time=processing_time or datetime.now(timezone.utc).isoformat(),
    )


def build_user_prompt(content_type: Optional[str], title: Optional[str], description: Optional[str]) -> str:
    subject = f"Please analyze this {content_type or 'image'}"
    if title:
        subject += f' titled "{title}"'
    parts = [subject + "."]
    if description:
        parts.append(f"Description: {description}")
    parts.append("Provide comprehensive analysis including OCR, categorization, and insights.")
    return " ".join(parts)


def guess_image_mime_type(file_path: str) -> str:
    mime_type, _ = mimetypes.guess_type(file_path)
    if mime_type and mime_type.startswith("image/"):
        return mime_type
    return DEFAULT_MIME_TYPE


def build_messages(
    file_base64: str,
    file_path: str,
    content_type: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    image_detail: str = "high",
) -> List[dict]:
    """Two-message chat payload: schema instruction plus the text/image user turn."""
    data_uri = f"data:{guess_image_mime_type(file_path)};base64,{file_base64}"
    return [
        {
            "role": "system",
            "content": build_system_prompt()
        },
        {
            "role": "user",
            "content": [
                {
                    "type": "text",
                    "text": build_user_prompt(content_type, title, description)
                },
                {
                    "type": "image_url",
                    "image_url": {
                        "url": data_uri,
                        "detail": image_detail
                    }
                }
            ]
        }
    ]
