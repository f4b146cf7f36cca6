"""Submission validation endpoint (published form only)."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from survey_flow.models.submission import SubmissionOutcome, SubmissionRecord
from survey_flow.validator import SubmissionValidator

from survey_flow_server.dependencies import get_validator, require_published

router = APIRouter(tags=["submissions"])


class SubmissionRequest(BaseModel):
    """Body for POST /submissions/validate: records in answering order."""
    records: list[SubmissionRecord] = Field(min_length=1)


@router.post("/submissions/validate", dependencies=[Depends(require_published)])
async def validate_submission(
    body: SubmissionRequest,
    validator: SubmissionValidator = Depends(get_validator),
) -> SubmissionOutcome:
    """Replay the records against the form graph.

    Returns 200 with the accepted walk, or the first violation as a typed
    error (400 ordering/regex/exclusivity, 404 unknown ids, 500 corrupt
    graph).
    """
    return await validator.validate_submission(body.records)
