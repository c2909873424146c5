"""
app/api/routers/ingestion.py

Production file upload endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from app.api.dependencies import get_spreadsheet_upload
from app.schemas.analytics import IngestionSummaryResponse
from app.services.file_ingestion_service import (
    FileIngestionError,
    FileIngestionService,
    FileTooLargeError,
    get_file_ingestion_service,
)
from app.services.working_set import WorkingSet, get_working_set

router = APIRouter(tags=["ingestion"])


@router.post("/upload", response_model=IngestionSummaryResponse)
def upload_file(
    file: UploadFile = Depends(get_spreadsheet_upload),
    ingestion_service: FileIngestionService = Depends(get_file_ingestion_service),
    working_set: WorkingSet = Depends(get_working_set),
) -> IngestionSummaryResponse:
    """
    Load one CSV/Excel production file, replacing the current working set.

    On failure the previously loaded data stays active.
    """

    # One byte past the limit is enough to reject the upload.
    try:
        result = ingestion_service.ingest(
            data=file.file.read(ingestion_service.max_upload_bytes + 1),
            filename=file.filename or "upload.csv",
        )
    except FileTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except FileIngestionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()

    working_set.replace(result)
    return IngestionSummaryResponse(
        source_name=result.source_name,
        rows_loaded=result.rows_loaded,
        loaded_at=result.loaded_at,
    )
