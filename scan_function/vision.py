from typing import List, Optional

import requests

from .config import Settings
from .exceptions import InvalidResponseFormatError, VisionAPIError
from .logger import get_logger

logger = get_logger(__name__)


class VisionClient:
    """Thin client for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        max_completion_tokens: int = 2000,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_completion_tokens = max_completion_tokens
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "VisionClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            max_completion_tokens=settings.max_completion_tokens,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def complete(self, messages: List[dict]) -> str:
        """Send the chat request and return the first choice's message content."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_completion_tokens": self.max_completion_tokens,
            "messages": messages,
        }
        logger.info(f"Sending request to {self.url} with model {self.model}")
        response = requests.post(self.url, headers=headers, json=payload, timeout=self.timeout)

        if not response.ok:
            error_text = response.text
            logger.error(f"OpenAI API error: {response.status_code} - {error_text}")
            raise VisionAPIError(
                f"OpenAI API error: {response.status_code} - {error_text}",
                upstream_status=response.status_code,
            )

        try:
            result = response.json()
        except ValueError:
            raise InvalidResponseFormatError()

        choices = result.get("choices") if isinstance(result, dict) else None
        if not choices or not isinstance(choices[0], dict):
            raise InvalidResponseFormatError()
        message = choices[0].get("message")
        if not isinstance(message, dict) or "content" not in message:
            raise InvalidResponseFormatError()

        logger.info("OpenAI response received")
        return message["content"]
