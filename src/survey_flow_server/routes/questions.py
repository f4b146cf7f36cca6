"""Question and answer authoring endpoints.

Nested under ``/sections/{section_id}`` because a question's position is
only meaningful inside its section's chain.  All endpoints are writes and
require an unlocked, unpublished form.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from survey_flow.authoring import FormAuthor
from survey_flow.models.graph import Answer, Question, QuestionType

from survey_flow_server.dependencies import get_author, require_unpublished

router = APIRouter(
    prefix="/sections/{section_id}/questions",
    tags=["questions"],
    dependencies=[Depends(require_unpublished)],
)

# PATCH fields where an explicit null is meaningful
_NULLABLE_FIELDS = {"description", "regex"}


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateQuestionRequest(BaseModel):
    """Body for POST /sections/{section_id}/questions."""
    title: str = Field(min_length=1)
    type: QuestionType
    # Insert after this question; null inserts at the head of the chain
    previous_id: Optional[int] = None
    description: Optional[str] = None
    required: bool = False
    has_other: bool = False
    regex: Optional[str] = None


class UpdateQuestionRequest(BaseModel):
    """Body for PATCH; only the fields sent are changed.

    ``regex: ""`` or ``regex: null`` clears the regex.
    """
    title: Optional[str] = Field(None, min_length=1)
    type: Optional[QuestionType] = None
    description: Optional[str] = None
    required: Optional[bool] = None
    has_other: Optional[bool] = None
    regex: Optional[str] = None


class ReorderQuestionRequest(BaseModel):
    previous_id: Optional[int] = None


class AnswerRequest(BaseModel):
    title: str = Field(min_length=1)


# ------------------------------------------------------------------
# Questions
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_question(
    section_id: int,
    body: CreateQuestionRequest,
    author: FormAuthor = Depends(get_author),
) -> Question:
    return await author.add_question(
        section_id,
        title=body.title,
        type=body.type,
        previous_id=body.previous_id,
        required=body.required,
        has_other=body.has_other,
        regex=body.regex,
        description=body.description,
    )


@router.patch("/{question_id}")
async def update_question(
    section_id: int,
    question_id: int,
    body: UpdateQuestionRequest,
    author: FormAuthor = Depends(get_author),
) -> Question:
    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key in _NULLABLE_FIELDS
    }
    return await author.edit_question(section_id, question_id, **changes)


@router.delete("/{question_id}", status_code=204)
async def delete_question(
    section_id: int,
    question_id: int,
    author: FormAuthor = Depends(get_author),
) -> None:
    await author.delete_question(section_id, question_id)


@router.patch("/{question_id}/order", status_code=204)
async def reorder_question(
    section_id: int,
    question_id: int,
    body: ReorderQuestionRequest,
    author: FormAuthor = Depends(get_author),
) -> None:
    """Move the question right after ``previous_id`` (null = first)."""
    await author.reorder_question(section_id, question_id, body.previous_id)


# ------------------------------------------------------------------
# Answers
# ------------------------------------------------------------------

@router.post("/{question_id}/answers", status_code=201)
async def create_answer(
    section_id: int,
    question_id: int,
    body: AnswerRequest,
    author: FormAuthor = Depends(get_author),
) -> Answer:
    return await author.add_answer(section_id, question_id, body.title)


@router.patch("/{question_id}/answers/{answer_id}")
async def update_answer(
    section_id: int,
    question_id: int,
    answer_id: int,
    body: AnswerRequest,
    author: FormAuthor = Depends(get_author),
) -> Answer:
    return await author.edit_answer(section_id, question_id, answer_id, body.title)


@router.delete("/{question_id}/answers/{answer_id}", status_code=204)
async def delete_answer(
    section_id: int,
    question_id: int,
    answer_id: int,
    author: FormAuthor = Depends(get_author),
) -> None:
    await author.delete_answer(section_id, question_id, answer_id)
