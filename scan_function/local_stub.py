from fastapi import Depends, FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .config import Settings
from .exceptions import ConfigurationError, ScanError
from .handler import CORS_HEADERS
from .logger import get_logger
from .processor import ScanProcessor, failure_envelope

app = FastAPI(title="process_scan")

logger = get_logger(__name__)


def get_processor() -> ScanProcessor:
    try:
        return ScanProcessor.from_settings(Settings.from_env())
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {str(e)}") from e


@app.exception_handler(ScanError)
async def scan_exception_handler(request: Request, exc: ScanError):
    logger.error(f"Scan Exception: {exc.error_code} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=failure_envelope(exc.message), headers=CORS_HEADERS)


@app.options("/process-scan")
def preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/process-scan")
async def process_scan(req: Request, processor: ScanProcessor = Depends(get_processor)):
    try:
        payload = await req.json()
    except Exception as json_error:
        logger.error(f"Failed to parse JSON: {str(json_error)}")
        return JSONResponse(status_code=500, content=failure_envelope("Invalid JSON payload"), headers=CORS_HEADERS)

    if not isinstance(payload, dict):
        return JSONResponse(status_code=500, content=failure_envelope("Invalid JSON payload"), headers=CORS_HEADERS)

    status_code, envelope = await run_in_threadpool(processor.process, payload)
    return JSONResponse(status_code=status_code, content=envelope, headers=CORS_HEADERS)
