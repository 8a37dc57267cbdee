# exam_engine/services/grading_client.py
# Client for the external grading endpoint. Only one submission may be in flight at a time.
from typing import List, Optional, Union

import httpx
from pydantic import ValidationError

from exam_engine.errors import SubmissionFailedError, SubmissionInProgressError
from exam_engine.models.session import GradingResult, SubmissionItem
from exam_engine.utils.config import settings
from exam_engine.utils.logger import logger

_submission_in_flight = False


def submission_in_flight() -> bool:
    return _submission_in_flight


class GradingClient:
    def __init__(self, base_url: str = settings.grading_base_url,
                 timeout: float = settings.grading_timeout_seconds,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def submit(self, attempt_ref: Union[int, str], payload: List[SubmissionItem]) -> GradingResult:
        """Posts the answered questions for grading; raises SubmissionInProgressError if another post is outstanding."""
        global _submission_in_flight
        if _submission_in_flight:
            raise SubmissionInProgressError()
        _submission_in_flight = True
        try:
            return await self._post(attempt_ref, payload)
        finally:
            _submission_in_flight = False

    async def _post(self, attempt_ref: Union[int, str], payload: List[SubmissionItem]) -> GradingResult:
        body = {"answers": [{"question": item.question_id, "answer": item.answer_text} for item in payload]}
        url = f"{self.base_url}/exams/attempts/{attempt_ref}/submit/"
        logger.info(f"Submitting {len(payload)} answers for attempt {attempt_ref} to {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Grading endpoint rejected attempt {attempt_ref}: {e.response.status_code}")
            raise SubmissionFailedError(
                f"Grading endpoint returned {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to submit attempt {attempt_ref}: {e}")
            raise SubmissionFailedError(f"Failed to submit exam: {e}") from e

        if not isinstance(data, dict):
            raise SubmissionFailedError("Grading endpoint returned an unexpected response")
        if "attempt_id" not in data and "attemptId" not in data:
            data["attempt_id"] = attempt_ref
        try:
            return GradingResult.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected grading response for attempt {attempt_ref}: {data}")
            raise SubmissionFailedError("Grading endpoint returned an unexpected response") from e
