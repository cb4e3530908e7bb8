from typing import Optional


class ScanError(Exception):
    """Base exception for analysis function errors"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or f"SCAN_{status_code}"

class MissingInputError(ScanError):
    """Required request fields are absent"""

    def __init__(self, message: str = "File path is required"):
        super().__init__(message, error_code="MISSING_INPUT")

class ConfigurationError(ScanError):
    """Credentials or service settings are missing"""

    def __init__(self, message: str = "Configuration missing"):
        super().__init__(message, error_code="CONFIGURATION_MISSING")

class StorageError(ScanError):
    """Storage download errors"""

    def __init__(self, message: str = "Failed to download file"):
        super().__init__(message, error_code="STORAGE_ERROR")

class VisionAPIError(ScanError):
    """Non-success status from the vision model API"""

    def __init__(self, message: str = "OpenAI API error", upstream_status: Optional[int] = None):
        super().__init__(message, error_code="VISION_API_ERROR")
        self.upstream_status = upstream_status

class InvalidResponseFormatError(ScanError):
    """Completion envelope is missing the expected choice structure"""

    def __init__(self, message: str = "Invalid OpenAI response format"):
        super().__init__(message, error_code="INVALID_RESPONSE_FORMAT")

class AnalysisParseError(ScanError):
    """Message content is not a JSON analysis object"""

    def __init__(self, message: str = "Failed to parse AI analysis response"):
        super().__init__(message, error_code="ANALYSIS_PARSE_ERROR")
