from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import ValidationError

from .config import Settings
from .encoding import encode_base64_chunked
from .exceptions import ConfigurationError, MissingInputError, ScanError, StorageError
from .logger import get_logger
from .prompts import build_messages
from .schemas import ScanRequest, parse_analysis
from .storage import S3Storage
from .vision import VisionClient

logger = get_logger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def failure_envelope(message: str) -> dict:
    return {
        "error": message or "Unknown error occurred",
        "success": False,
        "timestamp": utc_timestamp()
    }


class ScanProcessor:
    """Runs one scan through download, encoding, the vision model and parsing.

    Collaborators are injected so a processor never reads ambient
    configuration on its own.
    """

    def __init__(self, settings: Settings, storage: S3Storage, vision: VisionClient):
        self.settings = settings
        self.storage = storage
        self.vision = vision

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScanProcessor":
        return cls(settings, S3Storage.from_settings(settings), VisionClient.from_settings(settings))

    def analyze(
        self,
        file_path: Optional[str],
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> dict:
        """Return the success envelope or raise ScanError."""
        if not file_path:
            raise MissingInputError("File path is required")
        if not self.settings.s3_bucket:
            raise ConfigurationError("Storage configuration missing")

        logger.info(f"Downloading file from storage: {file_path}")
        file_bytes = self.storage.download(file_path)
        if not file_bytes:
            raise StorageError("Downloaded file is empty")

        logger.info(f"Converting {len(file_bytes)} bytes to base64")
        file_base64 = encode_base64_chunked(file_bytes)

        if not self.settings.openai_api_key:
            raise ConfigurationError("OpenAI API key not configured")

        messages = build_messages(
            file_base64,
            file_path,
            content_type=content_type,
            title=title,
            description=description,
            image_detail=self.settings.image_detail,
        )
        content = self.vision.complete(messages)
        analysis = parse_analysis(content)
        logger.info("AI analysis completed successfully")

        return {
            "filePath": file_path,
            **analysis,
            "success": True,
            "timestamp": utc_timestamp()
        }

    def process(self, payload: dict) -> Tuple[int, dict]:
        """Handle a raw request body; always returns (status_code, envelope)."""
        try:
            request = ScanRequest.model_validate(payload or {})
            logger.info(f"Processing scan request: filePath={request.file_path}, contentType={request.content_type}, title={request.title}")
            envelope = self.analyze(
                request.file_path,
                content_type=request.content_type,
                title=request.title,
                description=request.description,
            )
            return 200, envelope
        except ScanError as e:
            logger.error(f"Error in process-scan: {e.error_code} - {e.message}")
            return e.status_code, failure_envelope(e.message)
        except ValidationError as e:
            logger.error(f"Invalid scan request: {str(e)}")
            return 500, failure_envelope(f"Invalid request body: {str(e)}")
        except Exception as e:
            logger.error(f"Unexpected error in process-scan: {str(e)}", exc_info=True)
            return 500, failure_envelope(str(e))
