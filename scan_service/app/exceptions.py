from fastapi import HTTPException
from typing import Any, Dict, Optional

class ScanServiceException(HTTPException):
    """Base exception for scan service errors"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or f"SCAN_{status_code}"

class ValidationError(ScanServiceException):
    """Input validation errors"""

    def __init__(self, detail: str = "Invalid input data"):
        super().__init__(status_code=400, detail=detail, error_code="VALIDATION_ERROR")

class ScanNotFoundError(ScanServiceException):
    """Scan not found errors"""

    def __init__(self, scan_id: str):
        super().__init__(
            status_code=404,
            detail=f"Scan '{scan_id}' not found",
            error_code="SCAN_NOT_FOUND"
        )

class DocumentNotFoundError(ScanServiceException):
    """Document not found errors"""

    def __init__(self, document_id: str):
        super().__init__(
            status_code=404,
            detail=f"Document '{document_id}' not found",
            error_code="DOCUMENT_NOT_FOUND"
        )

class StorageError(ScanServiceException):
    """Object storage errors"""

    def __init__(self, detail: str = "Storage operation failed"):
        super().__init__(status_code=502, detail=detail, error_code="STORAGE_ERROR")

class StorageConfigError(ScanServiceException):
    """Storage bucket not configured"""

    def __init__(self, detail: str = "Storage configuration missing"):
        super().__init__(status_code=500, detail=detail, error_code="STORAGE_CONFIG_ERROR")

class AnalysisError(ScanServiceException):
    """Analysis function errors"""

    def __init__(self, detail: str = "Scan analysis failed"):
        super().__init__(status_code=502, detail=detail, error_code="ANALYSIS_ERROR")
