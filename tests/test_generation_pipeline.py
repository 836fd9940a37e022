import asyncio
import unittest

from tests.fakes import USER, FakeBackend, FakeResumeRepository, completion_body, json_response

from app.core.kv_store import MemoryKeyValueStore
from app.schemas.resume import FormData
from app.services.field_history import FieldHistoryStore
from app.services.generation_client import GenerationClient, UpstreamError
from app.services.generation_pipeline import (
    EMPTY_MESSAGE,
    FAILURE_MESSAGE,
    SAVE_FAILED_MESSAGE,
    TIMEOUT_MESSAGE,
    GenerationInProgress,
    GenerationPipeline,
    GenerationState,
    MissingRequiredField,
)


def _form(**overrides) -> FormData:
    values = {
        "name": "Jane Doe Smith",
        "email": "jane@example.com",
        "skills": "Python\nSQL",
        "job_description": 'Backend "platform" role\twith | pipes',
        "resume_type": "Functional",
    }
    values.update(overrides)
    return FormData(**values)


class GenerationPipelineTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.repository = FakeResumeRepository()
        self.history = FieldHistoryStore(MemoryKeyValueStore())

    def _pipeline(self, backend: FakeBackend, *, timeout_s: float = 5.0, repository=None) -> GenerationPipeline:
        client = GenerationClient(backend, timeout_s=timeout_s)
        return GenerationPipeline(client, repository or self.repository, USER, history=self.history)

    async def test_success_persists_and_returns_history_newest_first(self):
        backend = FakeBackend(
            [
                json_response(completion_body("# First")),
                json_response(completion_body("# Second")),
            ]
        )
        pipeline = self._pipeline(backend)

        first = await pipeline.submit(_form())
        second = await pipeline.submit(_form())

        self.assertEqual(first.state, "success")
        self.assertEqual(second.content, "<h3>Second</h3>")
        self.assertEqual([resume.content for resume in second.history], ["<h3>Second</h3>", "<h3>First</h3>"])
        self.assertEqual(second.resume_id, second.history[0].id)
        self.assertIs(pipeline.state, GenerationState.SUCCESS)

    async def test_payload_is_cleaned_before_sending(self):
        backend = FakeBackend([json_response(completion_body("ok"))])
        await self._pipeline(backend).submit(_form())

        payload = backend.payloads[0]
        self.assertEqual(payload["name"], "Jane Doe")
        self.assertEqual(payload["skills"], "Python SQL")
        self.assertEqual(payload["jobDescription"], "Backend 'platform' role with pipes")
        self.assertEqual(payload["resumeType"], "Functional")
        self.assertEqual(payload["phone"], "")

    async def test_submit_records_field_history(self):
        backend = FakeBackend([json_response(completion_body("ok"))])
        await self._pipeline(backend).submit(_form())

        self.assertEqual(self.history.suggestions("name"), ["Jane Doe Smith"])
        self.assertEqual(self.history.suggestions("skills"), ["Python\nSQL"])
        self.assertEqual(self.history.suggestions("phone"), [])

    async def test_blank_name_is_rejected_before_any_request(self):
        backend = FakeBackend()
        pipeline = self._pipeline(backend)
        with self.assertRaises(MissingRequiredField):
            await pipeline.submit(_form(name="   "))
        self.assertIs(pipeline.state, GenerationState.IDLE)
        self.assertEqual(backend.payloads, [])

    async def test_name_of_only_separators_is_rejected(self):
        backend = FakeBackend([json_response(completion_body("ok"))])
        pipeline = self._pipeline(backend)
        with self.assertRaises(MissingRequiredField):
            await pipeline.submit(_form(name='| " |'))
        self.assertIs(pipeline.state, GenerationState.IDLE)
        self.assertEqual(backend.payloads, [])
        self.assertEqual(self.history.load(), {})

    async def test_timeout_fails_with_timeout_message(self):
        backend = FakeBackend([json_response(completion_body("late"))], delay_s=1.0)
        pipeline = self._pipeline(backend, timeout_s=0.05)
        result = await pipeline.submit(_form())

        self.assertEqual(result.state, "failed")
        self.assertEqual(result.message, TIMEOUT_MESSAGE)
        self.assertEqual(self.repository.rows, [])

    async def test_upstream_error_fails_with_generic_message(self):
        backend = FakeBackend(error=UpstreamError("boom"))
        result = await self._pipeline(backend).submit(_form())
        self.assertEqual(result.state, "failed")
        self.assertEqual(result.message, FAILURE_MESSAGE)

    async def test_empty_content_succeeds_without_saving(self):
        backend = FakeBackend([json_response([{"unexpected": True}])])
        result = await self._pipeline(backend).submit(_form())
        self.assertEqual(result.state, "success")
        self.assertEqual(result.content, "")
        self.assertEqual(result.message, EMPTY_MESSAGE)
        self.assertEqual(self.repository.rows, [])

    async def test_save_failure_keeps_generated_content(self):
        backend = FakeBackend([json_response(completion_body("**Done**"))])
        pipeline = self._pipeline(backend, repository=FakeResumeRepository(fail_insert=True))
        result = await pipeline.submit(_form())
        self.assertEqual(result.state, "failed")
        self.assertEqual(result.message, SAVE_FAILED_MESSAGE)
        self.assertEqual(result.content, "<strong>Done</strong>")

    async def test_only_one_submit_in_flight(self):
        backend = FakeBackend([json_response(completion_body("ok"))], delay_s=0.1)
        pipeline = self._pipeline(backend)

        first = asyncio.create_task(pipeline.submit(_form()))
        await asyncio.sleep(0)
        self.assertIs(pipeline.state, GenerationState.SUBMITTING)
        with self.assertRaises(GenerationInProgress):
            await pipeline.submit(_form())

        result = await first
        self.assertEqual(result.state, "success")
        self.assertEqual(len(backend.payloads), 1)

    async def test_failed_pipeline_can_resubmit(self):
        backend = FakeBackend([json_response({}, status_code=500), json_response(completion_body("ok"))])
        pipeline = self._pipeline(backend)
        self.assertEqual((await pipeline.submit(_form())).state, "failed")
        self.assertEqual((await pipeline.submit(_form())).state, "success")


if __name__ == "__main__":
    unittest.main()
