from typing import Optional
import requests
from pydantic import ValidationError
from . import schemas
from .exceptions import AnalysisError
from .logger import get_logger

logger = get_logger(__name__)


class AnalysisClient:
    """Calls the process-scan function over HTTP."""

    def __init__(self, url: str, service_token: Optional[str] = None):
        self.url = url
        self.service_token = service_token

    def get_headers(self):
        if self.service_token:
            return {"Authorization": f"Bearer {self.service_token}"}
        return {}

    def analyze(self, file_path: str, content_type: str, title: str, description: Optional[str] = None) -> schemas.AnalysisEnvelope:
        payload = {
            "filePath": file_path,
            "contentType": content_type,
            "title": title,
            "description": description or "",
        }
        try:
            resp = requests.post(self.url, json=payload, headers=self.get_headers())
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling process-scan function: {str(e)}")
            raise AnalysisError(f"Analysis function unreachable: {str(e)}") from e

        try:
            body = resp.json()
        except ValueError:
            logger.error(f"process-scan returned a non-JSON body: {resp.status_code} - {resp.text}")
            raise AnalysisError(f"Analysis function error: {resp.status_code} - {resp.text}")

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            raise AnalysisError(message or "Unknown error occurred")

        try:
            return schemas.AnalysisEnvelope.model_validate(body)
        except ValidationError as e:
            raise AnalysisError(f"Unexpected analysis payload: {str(e)}") from e
