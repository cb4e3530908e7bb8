import base64
import json
from datetime import datetime
from unittest.mock import MagicMock, patch

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from scan_function.config import Settings
from scan_function.exceptions import AnalysisParseError
from scan_function.handler import process_scan
from scan_function.local_stub import app, get_processor
from scan_function.processor import ScanProcessor
from scan_function.prompts import build_messages, build_system_prompt, build_user_prompt, guess_image_mime_type
from scan_function.schemas import parse_analysis
from scan_function.storage import S3Storage
from scan_function.vision import VisionClient

BUCKET = "scans"

FULL_ANALYSIS = {
    "extractedText": "ACME Corp\nInvoice #42\nTotal: $10",
    "aiSummary": "Invoice from ACME Corp for $10.",
    "aiTags": ["finance", "invoice"],
    "category": "invoice",
    "isSensitive": False,
    "translation": {
        "originalLanguage": "en",
        "translatedText": None,
        "confidence": 0.98
    },
    "enhancement": {
        "imageQuality": "good",
        "suggestions": ["Increase contrast"],
        "readability": "high"
    },
    "smartInsights": {
        "keyPoints": ["Total is $10"],
        "actionItems": ["Pay invoice"],
        "entities": ["ACME Corp", "$10"],
        "documentStructure": "well-organized"
    },
    "metadata": {
        "language": "en",
        "confidence": 0.95,
        "documentType": "invoice",
        "processingTime": "2026-10-19T10:00:00+00:00",
        "textRegions": 3,
        "estimatedWords": 6
    }
}


def completion_response(content, status_code=200):
    """Build a stand-in for a requests.Response from the chat completions API"""
    response = MagicMock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    body = {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}
    response.json.return_value = body
    response.text = json.dumps(body)
    return response


@pytest.fixture(scope="function")
def aws_credentials(monkeypatch):
    """Mocked AWS Credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("LOCALSTACK_ENDPOINT", raising=False)


@pytest.fixture(scope="function")
def s3(aws_credentials):
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def settings():
    return Settings(s3_bucket=BUCKET, openai_api_key="sk-test")


@pytest.fixture
def processor(s3, settings):
    return ScanProcessor(settings, S3Storage(s3, BUCKET), VisionClient.from_settings(settings))


@patch("requests.post")
def test_invoice_end_to_end(mock_post, s3, processor):
    """A 10-byte upload and a minimal model reply produce the documented envelope"""
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    mock_post.return_value = completion_response(json.dumps({
        "extractedText": "Total: $10",
        "category": "invoice",
        "aiTags": ["finance"],
        "isSensitive": False
    }))

    status_code, envelope = processor.process({
        "filePath": "u1/123.jpg",
        "contentType": "document",
        "title": "Invoice",
        "description": ""
    })

    assert status_code == 200
    timestamp = envelope.pop("timestamp")
    assert datetime.fromisoformat(timestamp)
    assert envelope == {
        "filePath": "u1/123.jpg",
        "extractedText": "Total: $10",
        "category": "invoice",
        "aiTags": ["finance"],
        "isSensitive": False,
        "success": True
    }

    # Verify the outbound request
    mock_post.assert_called_once()
    call_args = mock_post.call_args
    assert call_args[0][0] == "https://api.openai.com/v1/chat/completions"
    assert call_args[1]["headers"]["Authorization"] == "Bearer sk-test"
    body = call_args[1]["json"]
    assert body["model"] == "gpt-4.1-2025-04-14"
    assert body["max_completion_tokens"] == 2000
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    user_content = body["messages"][1]["content"]
    assert user_content[0]["text"] == 'Please analyze this document titled "Invoice". Provide comprehensive analysis including OCR, categorization, and insights.'
    expected_uri = "data:image/jpeg;base64," + base64.b64encode(b"0123456789").decode("ascii")
    assert user_content[1]["image_url"] == {"url": expected_uri, "detail": "high"}


@patch("requests.post")
def test_full_response_keys_pass_through(mock_post, s3, processor):
    s3.put_object(Bucket=BUCKET, Key="u1/full.png", Body=b"\x89PNG....")
    mock_post.return_value = completion_response(json.dumps(FULL_ANALYSIS))

    status_code, envelope = processor.process({"filePath": "u1/full.png", "contentType": "image", "title": "Bill"})

    assert status_code == 200
    assert envelope["success"] is True
    assert envelope["filePath"] == "u1/full.png"
    for key, value in FULL_ANALYSIS.items():
        assert envelope[key] == value


@patch("requests.post")
def test_missing_file_path(mock_post, processor):
    status_code, envelope = processor.process({"contentType": "image", "title": "No file"})

    assert status_code == 500
    assert envelope["success"] is False
    assert envelope["error"] == "File path is required"
    assert "timestamp" in envelope
    mock_post.assert_not_called()


@patch("requests.post")
def test_missing_storage_object(mock_post, processor):
    """Storage errors surface the collaborator's message"""
    status_code, envelope = processor.process({"filePath": "u1/does-not-exist.jpg"})

    assert status_code == 500
    assert envelope["success"] is False
    assert envelope["error"].startswith("Failed to download file:")
    assert "NoSuchKey" in envelope["error"]
    mock_post.assert_not_called()


@patch("requests.post")
def test_empty_file_is_rejected(mock_post, s3, processor):
    s3.put_object(Bucket=BUCKET, Key="u1/empty.jpg", Body=b"")

    status_code, envelope = processor.process({"filePath": "u1/empty.jpg"})

    assert status_code == 500
    assert envelope["error"] == "Downloaded file is empty"
    mock_post.assert_not_called()


@patch("requests.post")
def test_missing_api_key_skips_http_call(mock_post, s3):
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    settings = Settings(s3_bucket=BUCKET, openai_api_key=None)
    processor = ScanProcessor(settings, S3Storage(s3, BUCKET), VisionClient.from_settings(settings))

    status_code, envelope = processor.process({"filePath": "u1/123.jpg"})

    assert status_code == 500
    assert envelope["success"] is False
    assert envelope["error"] == "OpenAI API key not configured"
    mock_post.assert_not_called()


@patch("requests.post")
def test_missing_storage_configuration(mock_post, s3):
    settings = Settings(s3_bucket=None, openai_api_key="sk-test")
    processor = ScanProcessor(settings, S3Storage(s3, None), VisionClient.from_settings(settings))

    status_code, envelope = processor.process({"filePath": "u1/123.jpg"})

    assert status_code == 500
    assert envelope["error"] == "Storage configuration missing"
    mock_post.assert_not_called()


@patch("requests.post")
def test_non_json_content_is_a_parse_error(mock_post, s3, processor):
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    mock_post.return_value = completion_response("Sure! Here is the analysis: the text says Total $10.")

    status_code, envelope = processor.process({"filePath": "u1/123.jpg"})

    assert status_code == 500
    assert envelope["success"] is False
    assert envelope["error"] == "Failed to parse AI analysis response"


@patch("requests.post")
def test_missing_choices_is_an_invalid_format(mock_post, s3, processor):
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    response = completion_response("{}")
    response.json.return_value = {"id": "chatcmpl-1", "object": "chat.completion"}
    mock_post.return_value = response

    status_code, envelope = processor.process({"filePath": "u1/123.jpg"})

    assert status_code == 500
    assert envelope["error"] == "Invalid OpenAI response format"


@patch("requests.post")
def test_http_error_includes_status_and_body(mock_post, s3, processor):
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    response = completion_response("{}", status_code=429)
    response.text = '{"error": {"message": "Rate limit reached"}}'
    mock_post.return_value = response

    status_code, envelope = processor.process({"filePath": "u1/123.jpg"})

    assert status_code == 500
    assert envelope["error"].startswith("OpenAI API error: 429")
    assert "Rate limit reached" in envelope["error"]
    # No retries
    mock_post.assert_called_once()


def test_parse_analysis_nulls_out_invalid_fields():
    content = json.dumps({
        "extractedText": "Hello",
        "category": "banana",
        "isSensitive": "yes",
        "aiTags": "finance",
        "enhancement": {"imageQuality": "blurry", "readability": "low"},
        "metadata": {"language": "en", "textRegions": "3", "estimatedWords": 2},
        "customField": {"kept": True}
    })

    analysis = parse_analysis(content)

    assert analysis["extractedText"] == "Hello"
    assert analysis["category"] is None
    assert analysis["isSensitive"] is None
    assert analysis["aiTags"] is None
    assert analysis["enhancement"] == {"imageQuality": None, "readability": "low"}
    assert analysis["metadata"] == {"language": "en", "textRegions": None, "estimatedWords": 2}
    assert analysis["customField"] == {"kept": True}
    assert "aiSummary" not in analysis
    assert "translation" not in analysis


def test_parse_analysis_keeps_unknown_nested_keys_verbatim():
    content = json.dumps({
        "translation": {"originalLanguage": "fr", "translatedText": "Hello", "notes": "kept?"},
        "extracted_text": "snake"
    })

    analysis = parse_analysis(content)

    assert analysis["translation"] == {"originalLanguage": "fr", "translatedText": "Hello", "notes": "kept?"}
    assert analysis["extracted_text"] == "snake"
    assert "extractedText" not in analysis


def test_parse_analysis_rejects_non_object_json():
    with pytest.raises(AnalysisParseError):
        parse_analysis('["not", "an", "object"]')


def test_parse_analysis_rejects_missing_content():
    with pytest.raises(AnalysisParseError):
        parse_analysis(None)


def test_user_prompt_variants():
    assert build_user_prompt(None, None, None) == "Please analyze this image. Provide comprehensive analysis including OCR, categorization, and insights."
    assert build_user_prompt("document", "Lease", "Signed copy") == (
        'Please analyze this document titled "Lease". Description: Signed copy '
        "Provide comprehensive analysis including OCR, categorization, and insights."
    )


def test_system_prompt_lists_enums():
    prompt = build_system_prompt("2026-10-19T10:00:00+00:00")

    assert '"category": "passport|invoice|receipt|photo|document|contract|form|certificate|other"' in prompt
    assert '"imageQuality": "excellent|good|fair|poor"' in prompt
    assert '"readability": "high|medium|low"' in prompt
    assert '"documentStructure": "well-organized|partially-structured|unstructured"' in prompt
    assert '"processingTime": "2026-10-19T10:00:00+00:00"' in prompt


def test_data_uri_mime_type():
    assert guess_image_mime_type("u1/scan.png") == "image/png"
    assert guess_image_mime_type("u1/scan.pdf") == "image/jpeg"
    assert guess_image_mime_type("u1/scan") == "image/jpeg"

    messages = build_messages("QUJD", "u1/scan.png", image_detail="low")
    assert messages[1]["content"][1]["image_url"] == {"url": "data:image/png;base64,QUJD", "detail": "low"}


def test_lambda_options_preflight():
    response = process_scan({"httpMethod": "OPTIONS"}, {})

    assert response["statusCode"] == 200
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"
    assert "content-type" in response["headers"]["Access-Control-Allow-Headers"]


@patch("requests.post")
def test_lambda_handler_reads_settings_from_env(mock_post, s3, monkeypatch):
    monkeypatch.setenv("S3_BUCKET", BUCKET)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    mock_post.return_value = completion_response(json.dumps({"extractedText": "Total: $10"}))

    event = {
        "requestContext": {"http": {"method": "POST"}},
        "body": json.dumps({"filePath": "u1/123.jpg", "contentType": "document", "title": "Invoice"})
    }
    response = process_scan(event, {})

    assert response["statusCode"] == 200
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"
    body = json.loads(response["body"])
    assert body["success"] is True
    assert body["extractedText"] == "Total: $10"
    assert mock_post.call_args[1]["headers"]["Authorization"] == "Bearer sk-env"


def test_lambda_handler_invalid_json():
    response = process_scan({"httpMethod": "POST", "body": "{invalid json"}, {})

    assert response["statusCode"] == 500
    body = json.loads(response["body"])
    assert body["success"] is False
    assert body["error"] == "Invalid JSON payload"


@patch("requests.post")
def test_local_stub_endpoint(mock_post, s3, processor):
    s3.put_object(Bucket=BUCKET, Key="u1/123.jpg", Body=b"0123456789")
    mock_post.return_value = completion_response(json.dumps({"category": "receipt"}))
    app.dependency_overrides[get_processor] = lambda: processor
    try:
        client = TestClient(app)

        response = client.post("/process-scan", json={"filePath": "u1/123.jpg", "contentType": "image", "title": "Lunch"})
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.json()["category"] == "receipt"

        response = client.post("/process-scan", json={"title": "Lunch"})
        assert response.status_code == 500
        assert response.json()["error"] == "File path is required"

        response = client.options("/process-scan")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
    finally:
        app.dependency_overrides.clear()


def test_lambda_handler_invalid_configuration(monkeypatch):
    monkeypatch.setenv("OPENAI_MAX_TOKENS", "lots")

    response = process_scan({"httpMethod": "POST", "body": json.dumps({"filePath": "u1/123.jpg"})}, {})

    assert response["statusCode"] == 500
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"
    body = json.loads(response["body"])
    assert body["success"] is False
    assert body["error"].startswith("Invalid configuration")


def test_local_stub_invalid_configuration(monkeypatch):
    monkeypatch.setenv("OPENAI_MAX_TOKENS", "lots")
    client = TestClient(app)

    response = client.post("/process-scan", json={"filePath": "u1/123.jpg"})

    assert response.status_code == 500
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.json()["success"] is False
    assert response.json()["error"].startswith("Invalid configuration")


@pytest.mark.parametrize("request_context", [None, {"http": None}, {"http": {}}])
def test_lambda_handler_tolerates_empty_request_context(request_context):
    processor = MagicMock()
    processor.process.return_value = (200, {"success": True})
    event = {"requestContext": request_context, "body": json.dumps({"filePath": "u1/123.jpg"})}

    response = process_scan(event, {}, processor=processor)

    assert response["statusCode"] == 200
    processor.process.assert_called_once_with({"filePath": "u1/123.jpg"})
