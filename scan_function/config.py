import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4.1-2025-04-14"


class Settings(BaseModel):
    """Credentials and endpoints handed to the processor at construction time."""

    s3_bucket: Optional[str] = None
    aws_region: str = "us-east-1"
    localstack_endpoint: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_model: str = DEFAULT_OPENAI_MODEL
    max_completion_tokens: int = 2000
    image_detail: str = "high"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            s3_bucket=os.getenv("S3_BUCKET") or None,
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            localstack_endpoint=os.getenv("LOCALSTACK_ENDPOINT") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL),
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            max_completion_tokens=int(os.getenv("OPENAI_MAX_TOKENS", 2000)),
            image_detail=os.getenv("OPENAI_IMAGE_DETAIL", "high"),
        )
