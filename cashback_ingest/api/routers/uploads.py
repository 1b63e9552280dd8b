"""
Upload endpoint for monthly cashback exports.
"""
import logging
import math
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cashback_ingest.api.schemas.shared import DateParams, ErrorResponse, IngestSummary, UploadResponse
from cashback_ingest.core.config import settings
from cashback_ingest.core.errors import DatabasePoolError, InvalidDateParams
from cashback_ingest.db.session import close_ingest_pool, get_pool_factory
from cashback_ingest.domain.cashback.schema import build_schema_name
from cashback_ingest.domain.cashback.service import ingest_cashback_file

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": UploadResponse},
    },
)
def upload_cashback_file(
    file: Optional[UploadFile] = File(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    open_pool: Callable = Depends(get_pool_factory),
):
    """
    Ingest a semicolon-delimited cashback export into ``cashback_<month>_<year>.domain``.

    Parameters:
    - file: The export (UTF-8, optional BOM, first line is a header)
    - month, year: Select the destination schema

    Returns:
    - 200 once every accepted row has been attempted, even if some inserts failed
    - 400 if the file or the date parameters are missing or invalid
    - 500 if the database pool cannot be opened
    - 504 if the request deadline cancelled part of the ingestion
    """
    if file is None:
        logger.warning("Upload rejected: no file field in request")
        return _error(400, "Failed to read the uploaded file")

    try:
        date_params = DateParams(month=month, year=year)
        schema_name = build_schema_name(date_params.month, date_params.year)
    except (ValidationError, InvalidDateParams) as e:
        logger.warning("Upload rejected: invalid date parameters: %s", e)
        return _error(400, "Invalid date parameters")

    try:
        engine = open_pool()
    except DatabasePoolError as e:
        logger.error("Upload of %s aborted: %s", file.filename, e)
        return _error(500, "Failed to connect to the database")

    logger.info("Ingesting %s into %s", file.filename, schema_name)
    try:
        result = ingest_cashback_file(file.file, engine, schema_name, config=settings)
    finally:
        close_ingest_pool(engine)

    summary = IngestSummary(**result.to_dict())
    seconds = int(math.ceil(result.elapsed_seconds))

    if result.timed_out:
        message = (
            f"Ingestion timed out after {seconds} seconds for month {date_params.month}, "
            f"year {date_params.year}; {result.cancelled} rows were not attempted"
        )
        return JSONResponse(
            status_code=504,
            content=UploadResponse(message=message, summary=summary).model_dump(),
        )

    return UploadResponse(
        message=(
            f"Data inserted successfully in {seconds} seconds for month {date_params.month}, "
            f"year {date_params.year}"
        ),
        summary=summary,
    )
