from __future__ import annotations

import asyncio
import logging
import time
import uuid
from enum import Enum

from app.analytics.db import log_generation_run
from app.integrations.supabase_client import ResumeRepository, SessionUser
from app.schemas.resume import FormData, GenerationResult, Resume
from app.services.field_history import FieldHistoryStore
from app.services.generation_client import GenerationClient, GenerationError, RequestTimeout
from app.services.resume_form import can_submit, prepare_submission

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Resume generation timed out. Please try again."
FAILURE_MESSAGE = "Error generating resume. Please try again."
SAVE_FAILED_MESSAGE = "Your resume was generated but could not be saved to your history."
EMPTY_MESSAGE = "The generator returned no content. Please adjust your details and try again."


class GenerationState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class MissingRequiredField(ValueError):
    pass


class GenerationInProgress(RuntimeError):
    pass


class GenerationPipeline:
    """One résumé form's submit cycle.

    idle -> submitting -> success | failed. A finished pipeline can be
    submitted again; a submitting one cannot.
    """

    def __init__(
        self,
        client: GenerationClient,
        repository: ResumeRepository,
        user: SessionUser,
        *,
        history: FieldHistoryStore | None = None,
    ):
        self._client = client
        self._repository = repository
        self._user = user
        self._history = history
        self.state = GenerationState.IDLE
        self.message = ""
        self.content = ""
        self.resumes: list[Resume] = []

    @property
    def owner_id(self) -> str:
        return self._user.id

    def _log_run(self, run_id: str, form: FormData, status: str, started: float, **extra) -> None:
        try:
            log_generation_run(
                run_id=run_id,
                backend=self._client.backend_name,
                resume_type=form.resume_type,
                has_job_description=bool(form.job_description),
                status=status,
                latency_ms=int((time.perf_counter() - started) * 1000),
                **extra,
            )
        except Exception:  # pragma: no cover - analytics must not break generation
            logger.debug("generation_run_logging_failed", exc_info=True)

    def _result(self, resume_id: str | None = None) -> GenerationResult:
        return GenerationResult(
            state=self.state.value,
            content=self.content,
            message=self.message,
            resume_id=resume_id,
            history=self.resumes,
        )

    async def submit(self, form: FormData) -> GenerationResult:
        if self.state is GenerationState.SUBMITTING:
            raise GenerationInProgress("A resume is already being generated.")
        if not can_submit(form):
            raise MissingRequiredField("Full name is required.")

        self.state = GenerationState.SUBMITTING
        self.content = ""
        self.message = ""
        if self._history is not None:
            try:
                await asyncio.to_thread(self._history.record_form, form)
            except Exception:
                self.state = GenerationState.IDLE
                raise
        run_id = uuid.uuid4().hex
        started = time.perf_counter()
        payload = prepare_submission(form).to_payload()

        try:
            content = await self._client.generate(payload)
        except RequestTimeout:
            self.state = GenerationState.FAILED
            self.message = TIMEOUT_MESSAGE
            logger.warning("generation_failed run_id=%s reason=timeout", run_id)
            self._log_run(run_id, form, "failed", started, error_code="timeout")
            return self._result()
        except GenerationError as exc:
            self.state = GenerationState.FAILED
            self.message = FAILURE_MESSAGE
            logger.warning("generation_failed run_id=%s reason=%s", run_id, exc.code)
            self._log_run(run_id, form, "failed", started, error_code=exc.code)
            return self._result()

        self.state = GenerationState.SUCCESS
        self.content = content
        if not content:
            self.message = EMPTY_MESSAGE
            self._log_run(run_id, form, "empty", started, content_chars=0)
            return self._result()

        try:
            record = await asyncio.to_thread(self._repository.insert, self._user, content)
            self.resumes = await asyncio.to_thread(self._repository.list_for_user, self._user)
        except Exception:  # noqa: BLE001 - the generated content is still returned
            self.state = GenerationState.FAILED
            self.message = SAVE_FAILED_MESSAGE
            logger.exception("generation_persist_failed run_id=%s", run_id)
            self._log_run(run_id, form, "failed", started, error_code="persist_failed")
            return self._result()
        logger.info(
            "generation_succeeded run_id=%s chars=%s history=%s",
            run_id,
            len(content),
            len(self.resumes),
        )
        self._log_run(run_id, form, "success", started, content_chars=len(content))
        return self._result(resume_id=record.id)
