import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from app.api.dependencies import (
    get_current_user,
    get_generation_pipeline,
    get_resume_repository,
    release_generation_pipeline,
    route_rate_limit,
)
from app.core.config import settings
from app.integrations.supabase_client import ResumeRepository, SessionUser
from app.schemas.resume import DownloadRequest, FormData, GenerationResult, ResumeHistoryResponse
from app.services.document_export import DOC_MEDIA_TYPE, build_document, content_disposition, download_filename
from app.services.generation_pipeline import GenerationInProgress, GenerationPipeline, MissingRequiredField

logger = logging.getLogger(__name__)

router = APIRouter()


def _document_response(content_html: str, filename: str) -> Response:
    return Response(
        content=build_document(content_html),
        media_type=DOC_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.post(
    "/resumes",
    response_model=GenerationResult,
    dependencies=[Depends(route_rate_limit(settings.generation_rate_limit_per_minute))],
)
async def create_resume(
    request: Request,
    payload: FormData,
    pipeline: GenerationPipeline = Depends(get_generation_pipeline),
):
    try:
        return await pipeline.submit(payload)
    except MissingRequiredField as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except GenerationInProgress as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    finally:
        release_generation_pipeline(request, pipeline)


@router.get("/resumes", response_model=ResumeHistoryResponse)
async def list_resumes(
    user: SessionUser = Depends(get_current_user),
    repository: ResumeRepository = Depends(get_resume_repository),
):
    resumes = await asyncio.to_thread(repository.list_for_user, user)
    return ResumeHistoryResponse(resumes=resumes)


@router.get("/resumes/{resume_id}/download")
async def download_resume(
    resume_id: str,
    user: SessionUser = Depends(get_current_user),
    repository: ResumeRepository = Depends(get_resume_repository),
):
    resume = await asyncio.to_thread(repository.get, user, resume_id)
    if resume is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume not found.")
    logger.info("resume_download resume_id=%s", resume_id)
    return _document_response(resume.content, download_filename(created_at=resume.created_at))


@router.post("/resumes/download")
async def download_generated(payload: DownloadRequest, _: SessionUser = Depends(get_current_user)):
    return _document_response(payload.content, download_filename(requested=payload.filename))
