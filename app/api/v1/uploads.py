import asyncio
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.api.dependencies import route_rate_limit
from app.core.config import settings
from app.parsing.parse import ExtractionFailed, UnsupportedFormat, extract_document
from app.parsing.resume_fields import extraction_message, parse_resume_text
from app.schemas.resume import ExtractResumeResponse
from app.services.upload_security import UploadTooLarge, validate_upload_signature

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLarge(max_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "/resume/extract",
    response_model=ExtractResumeResponse,
    dependencies=[Depends(route_rate_limit(settings.upload_rate_limit_per_minute))],
)
async def extract_resume(file: UploadFile = File(...)):
    filename = file.filename or "uploaded-file"
    try:
        content = await _read_upload(file, settings.max_upload_bytes)
    except UploadTooLarge as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc

    try:
        validate_upload_signature(filename=filename, content=content, content_type=file.content_type)
        document = await asyncio.to_thread(
            extract_document,
            filename=filename,
            content=content,
            content_type=file.content_type,
        )
    except UnsupportedFormat as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ExtractionFailed as exc:
        logger.warning("resume_extract_failed file_ext=%s cause=%s", filename.rsplit(".", 1)[-1], exc.cause)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    parsed = parse_resume_text(document.text)
    return ExtractResumeResponse(
        source_type=document.source_type,
        filename=document.filename,
        text=document.text,
        fields=parsed.updates,
        fields_extracted=parsed.fields_extracted,
        message=extraction_message(parsed.fields_extracted),
    )
