import base64
import json

from .config import Settings
from .logger import get_logger
from .processor import ScanProcessor, failure_envelope

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _request_method(event) -> str:
    if not isinstance(event, dict):
        return ""
    # API Gateway REST (v1) vs HTTP API / function URL (v2)
    http_context = (event.get("requestContext") or {}).get("http") or {}
    method = event.get("httpMethod") or http_context.get("method") or ""
    return str(method).upper()


def _response(status_code: int, body=None) -> dict:
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(body) if body is not None else ""
    }


def process_scan(event, context, processor: ScanProcessor = None):
    if _request_method(event) == "OPTIONS":
        return _response(200)

    # event can be dict or may contain "body" (string) depending on invocation method
    payload = event.get("body") if isinstance(event, dict) and "body" in event else event
    if isinstance(payload, str):
        try:
            if isinstance(event, dict) and event.get("isBase64Encoded"):
                payload = base64.b64decode(payload).decode("utf-8")
            payload = json.loads(payload) if payload else {}
        except (ValueError, UnicodeDecodeError) as e:
            logger.error(f"Failed to parse payload: {e}")
            return _response(500, failure_envelope("Invalid JSON payload"))

    if not isinstance(payload, dict):
        return _response(500, failure_envelope("Invalid JSON payload"))

    if processor is None:
        try:
            processor = ScanProcessor.from_settings(Settings.from_env())
        except Exception as e:
            logger.error(f"Failed to configure process-scan: {str(e)}", exc_info=True)
            return _response(500, failure_envelope(f"Invalid configuration: {str(e)}"))

    status_code, envelope = processor.process(payload)
    return _response(status_code, envelope)
