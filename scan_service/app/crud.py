from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session
from . import models, schemas


def create_scan(db: Session, user_id: str, title: str, description: Optional[str], content_type: str):
    db_scan = models.ScanRecord(user_id=user_id, title=title, description=description or None, content_type=content_type)
    db.add(db_scan)
    db.flush()
    return db_scan

def add_document(db: Session, scan: models.ScanRecord, position: int, file_path: str, file_name: str, file_size: int, file_type: Optional[str]):
    db_doc = models.ScanDocument(
        scan_id=scan.id,
        position=position,
        file_path=file_path,
        file_name=file_name,
        file_size=file_size,
        file_type=file_type,
    )
    db.add(db_doc)
    if position == 0:
        scan.file_path = file_path
    return db_doc

def get_scan(db: Session, scan_id: str, user_id: str):
    return (
        db.query(models.ScanRecord)
        .filter(models.ScanRecord.id == scan_id, models.ScanRecord.user_id == user_id)
        .first()
    )

def get_scans(db: Session, user_id: str) -> List[models.ScanRecord]:
    return (
        db.query(models.ScanRecord)
        .filter(models.ScanRecord.user_id == user_id)
        .order_by(models.ScanRecord.created_at.desc())
        .all()
    )

def apply_analysis(target, analysis: schemas.AnalysisEnvelope):
    """Copy analysis fields onto a ScanRecord or ScanDocument."""
    target.extracted_text = analysis.extracted_text
    target.ai_summary = analysis.ai_summary
    target.ai_tags = analysis.ai_tags
    target.category = analysis.category
    target.is_sensitive = bool(analysis.is_sensitive)
    target.analysis_metadata = analysis.metadata
    if isinstance(target, models.ScanDocument):
        target.analysis_details = analysis.details()
        target.processed_at = datetime.now(timezone.utc)
    return target

def delete_scan(db: Session, scan: models.ScanRecord):
    db.delete(scan)
    db.commit()

def filter_scans(scans: List[models.ScanRecord], query: Optional[str] = None, category: Optional[str] = None):
    """Substring search over title/description/extracted text plus a category filter.

    ``category`` matches either the content type or the AI category; ``all``
    or an empty value disables it.
    """
    needle = (query or "").strip().lower()
    results = []
    for scan in scans:
        if needle:
            haystacks = (scan.title, scan.description, scan.extracted_text)
            if not any(needle in text.lower() for text in haystacks if text):
                continue
        if category and category != "all" and category not in (scan.content_type, scan.category):
            continue
        results.append(scan)
    return results

def list_categories(scans: List[models.ScanRecord]) -> List[str]:
    return list(dict.fromkeys(scan.category for scan in scans if scan.category))
