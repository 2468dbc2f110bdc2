"""
Spreadsheet import API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File as FastAPIFile
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from pathlib import Path
import time
import logging
from atm_logistics.db.database import get_db, settings
from atm_logistics.schemas.import_batch import ImportBatchResponse, DeletionSummaryResponse
from atm_logistics.schemas.import_report import ImportResponse
from atm_logistics.services.sheet_reader import SUPPORTED_EXTENSIONS, WorkbookError, file_extension
from atm_logistics.services.import_pipeline import run_import
from atm_logistics.services.import_lifecycle import (
    create_import_batch,
    delete_import_batch,
    generate_stored_filename,
    get_import_batch,
    list_import_batches,
    mark_import_failed,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", response_model=ImportResponse)
async def upload_import(
    file: UploadFile = FastAPIFile(...),
    db: Session = Depends(get_db)
):
    """Upload a spreadsheet and reconcile it into vendors, assets and movements."""
    filename = file.filename or ""
    ext = file_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '{ext or filename}'. Upload one of: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)} MB upload limit"
        )

    # Ensure upload directory exists
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    stored_filename = generate_stored_filename(filename)
    file_path = upload_dir / stored_filename
    file_path.write_bytes(content)

    batch = create_import_batch(
        db,
        original_filename=filename,
        file_size=len(content),
        content_type=file.content_type,
        stored_filename=stored_filename,
        storage_path=str(file_path),
    )

    start = time.perf_counter()
    try:
        outcome = run_import(db, batch, content, filename)
    except WorkbookError as e:
        mark_import_failed(db, batch, str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.exception("Import of %s failed", filename)
        mark_import_failed(db, batch, f"Unexpected error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error processing file: {str(e)}"
        )

    logger.info(
        "Processed upload %s (%.1f KB) as import %s in %.2fs",
        filename,
        len(content) / 1024,
        batch.id,
        time.perf_counter() - start,
    )
    return ImportResponse.model_validate(outcome)


@router.get("/", response_model=List[ImportBatchResponse])
async def list_imports(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """List import batches, newest first."""
    return list_import_batches(db, skip=skip, limit=limit)


@router.get("/{import_id}", response_model=ImportBatchResponse)
async def get_import(
    import_id: UUID,
    db: Session = Depends(get_db)
):
    """Get an import batch by ID."""
    batch = get_import_batch(db, import_id)
    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import {import_id} not found"
        )
    return batch


@router.delete("/{import_id}", response_model=DeletionSummaryResponse)
async def delete_import(
    import_id: UUID,
    db: Session = Depends(get_db)
):
    """Delete an import batch and everything it exclusively created."""
    batch = get_import_batch(db, import_id)
    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import {import_id} not found"
        )
    storage_path = batch.storage_path

    try:
        summary = delete_import_batch(db, import_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting import: {str(e)}"
        )

    if storage_path:
        try:
            Path(storage_path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove stored file %s: %s", storage_path, e)

    return DeletionSummaryResponse(
        import_batch_id=import_id,
        costings_deleted=summary.costings_deleted,
        assets_deleted=summary.assets_deleted,
        movements_deleted=summary.movements_deleted,
        vendors_deleted=summary.vendors_deleted,
        vendors_detached=summary.vendors_detached,
        total_deleted=summary.total_deleted,
        message=summary.message,
    )
