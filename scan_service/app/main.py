import os
import time
from contextlib import asynccontextmanager
from typing import List, Optional
import boto3
from dotenv import load_dotenv
from fastapi import FastAPI, UploadFile, File, Form, HTTPException, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from . import models, schemas, crud, database, auth
from .analysis_client import AnalysisClient
from .exceptions import (
    AnalysisError,
    DocumentNotFoundError,
    ScanNotFoundError,
    ScanServiceException,
    StorageError,
    ValidationError,
)
from .logger import get_logger
from .storage import ScanStorage

load_dotenv()

AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
LOCALSTACK_ENDPOINT = os.getenv("LOCALSTACK_ENDPOINT")
S3_BUCKET = os.getenv("S3_BUCKET")
SCAN_FUNCTION_URL = os.getenv("SCAN_FUNCTION_URL", "http://scan_function:9000/process-scan")
SERVICE_TOKEN = os.getenv("SERVICE_TOKEN")

logger = get_logger(__name__)

# S3 client setup
boto3_kwargs = {"region_name": AWS_REGION}
if LOCALSTACK_ENDPOINT:
    boto3_kwargs["endpoint_url"] = LOCALSTACK_ENDPOINT
s3_client = boto3.client("s3", **boto3_kwargs)


@asynccontextmanager
async def lifespan(app: FastAPI):
    models.Base.metadata.create_all(bind=database.engine)
    if not S3_BUCKET:
        logger.warning("S3_BUCKET is not set - uploads and downloads will fail")
    yield


app = FastAPI(title="Scan Service", lifespan=lifespan)


@app.exception_handler(ScanServiceException)
async def scan_exception_handler(request: Request, exc: ScanServiceException):
    logger.error(f"Scan Exception: {exc.error_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error_code": exc.error_code, "message": exc.detail},
        headers=exc.headers,
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error_code": f"HTTP_{exc.status_code}", "message": exc.detail},
        headers=exc.headers,
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error_code": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
    )


def get_db():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_storage() -> ScanStorage:
    return ScanStorage(s3_client, S3_BUCKET)

def get_analyzer() -> AnalysisClient:
    return AnalysisClient(SCAN_FUNCTION_URL, SERVICE_TOKEN)

def get_owned_scan(db: Session, scan_id: str, user_id: str) -> models.ScanRecord:
    scan = crud.get_scan(db, scan_id, user_id)
    if not scan:
        raise ScanNotFoundError(scan_id)
    return scan

def build_storage_path(user_id: str, scan_id: str, index: int, filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower() or "bin"
    return f"{user_id}/{scan_id}/{int(time.time() * 1000)}_{index}.{ext}"


# POST /scans
@app.post("/scans", response_model=schemas.ScanDetailResponse, status_code=201)
def create_scan(
    files: List[UploadFile] = File(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    content_type: schemas.ContentType = Form("document"),
    current_user: str = Depends(auth.verify_token),
    db: Session = Depends(get_db),
    storage: ScanStorage = Depends(get_storage),
):
    if not title.strip():
        raise ValidationError("Title is required")
    if not files:
        raise ValidationError("At least one file is required")

    scan = crud.create_scan(db, user_id=current_user, title=title.strip(), description=description, content_type=content_type)
    uploaded_paths = []

    # Upload one file at a time, in the order they were submitted
    try:
        for index, file in enumerate(files):
            content = file.file.read()
            path = build_storage_path(current_user, scan.id, index, file.filename)
            storage.upload(path, content, file.content_type)
            uploaded_paths.append(path)
            crud.add_document(
                db,
                scan,
                position=index,
                file_path=path,
                file_name=file.filename or os.path.basename(path),
                file_size=len(content),
                file_type=file.content_type,
            )
            logger.info(f"Uploaded {file.filename} to {path}")
    except Exception:
        db.rollback()
        for path in uploaded_paths:
            try:
                storage.delete(path)
            except StorageError:
                logger.warning(f"Could not remove orphaned upload {path}")
        raise

    db.commit()
    db.refresh(scan)
    logger.info(f"Saved scan {scan.id} with {len(uploaded_paths)} document(s)")
    return scan

# POST /scans/{scan_id}/process
@app.post("/scans/{scan_id}/process", response_model=schemas.ProcessResponse)
def process_scan(
    scan_id: str,
    current_user: str = Depends(auth.verify_token),
    db: Session = Depends(get_db),
    analyzer: AnalysisClient = Depends(get_analyzer),
):
    scan = get_owned_scan(db, scan_id, current_user)
    results = []
    record_updated = False

    for doc in scan.documents:
        try:
            analysis = analyzer.analyze(doc.file_path, scan.content_type, scan.title, scan.description)
        except AnalysisError as e:
            logger.warning(f"Skipping document {doc.id} ({doc.file_name}): {e.detail}")
            results.append(schemas.ProcessItemResult(document_id=doc.id, file_name=doc.file_name, status="failure", reason=e.detail))
            continue

        crud.apply_analysis(doc, analysis)
        # The record shows the analysis of its first successfully processed document
        if not record_updated:
            crud.apply_analysis(scan, analysis)
            record_updated = True
        db.commit()
        results.append(schemas.ProcessItemResult(document_id=doc.id, file_name=doc.file_name, status="success"))

    succeeded = len([r for r in results if r.status == "success"])
    logger.info(f"Processing completed for scan {scan_id}. Success: {succeeded}, Failures: {len(results) - succeeded}")
    return schemas.ProcessResponse(scan_id=scan_id, results=results, succeeded=succeeded, failed=len(results) - succeeded)

# GET /scans?q=invoice&category=receipt
@app.get("/scans", response_model=List[schemas.ScanResponse])
def read_scans(
    q: Optional[str] = Query(None, max_length=200),
    category: Optional[str] = Query(None),
    current_user: str = Depends(auth.verify_token),
    db: Session = Depends(get_db),
):
    scans = crud.get_scans(db, current_user)
    return crud.filter_scans(scans, query=q, category=category)

# GET /scans/categories
@app.get("/scans/categories", response_model=List[str])
def read_categories(current_user: str = Depends(auth.verify_token), db: Session = Depends(get_db)):
    return crud.list_categories(crud.get_scans(db, current_user))

# GET /scans/{scan_id}
@app.get("/scans/{scan_id}", response_model=schemas.ScanDetailResponse)
def read_scan(scan_id: str, current_user: str = Depends(auth.verify_token), db: Session = Depends(get_db)):
    return get_owned_scan(db, scan_id, current_user)

# GET /scans/{scan_id}/documents/{document_id}/download
@app.get("/scans/{scan_id}/documents/{document_id}/download")
def download_document(
    scan_id: str,
    document_id: str,
    current_user: str = Depends(auth.verify_token),
    db: Session = Depends(get_db),
    storage: ScanStorage = Depends(get_storage),
):
    scan = get_owned_scan(db, scan_id, current_user)
    doc = next((d for d in scan.documents if d.id == document_id), None)
    if not doc:
        raise DocumentNotFoundError(document_id)

    content = storage.download(doc.file_path)
    return Response(
        content=content,
        media_type=doc.file_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{doc.file_name}"'},
    )

# DELETE /scans/{scan_id}?delete_files=true
@app.delete("/scans/{scan_id}")
def delete_scan(
    scan_id: str,
    delete_files: bool = Query(False),
    current_user: str = Depends(auth.verify_token),
    db: Session = Depends(get_db),
    storage: ScanStorage = Depends(get_storage),
):
    scan = get_owned_scan(db, scan_id, current_user)

    if delete_files:
        for doc in scan.documents:
            try:
                storage.delete(doc.file_path)
            except StorageError as e:
                logger.warning(f"Storage delete failed for {doc.file_path}: {e.detail}")

    crud.delete_scan(db, scan)
    return {"status": "deleted", "scan_id": scan_id}
