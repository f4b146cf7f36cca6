"""Section endpoints: read the form, edit sections, link next sections.

Reads are always allowed.  Every write goes through ``require_unpublished``
so the graph only changes while the form is an unlocked draft.
"""

from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from survey_flow.authoring import FormAuthor
from survey_flow.errors import ResourceNotFound, WrongData
from survey_flow.interfaces import GraphStore
from survey_flow.linker import SectionLinker
from survey_flow.models.graph import Answer, Question, Section
from survey_flow.models.next import NextPointer

from survey_flow_server.dependencies import (
    get_author,
    get_graph_store,
    get_linker,
    require_unpublished,
)

router = APIRouter(tags=["sections"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class QuestionView(Question):
    """A question together with its predefined answers."""
    answers: list[Answer] = []


class SectionView(Section):
    """A section with its questions in chain order and its next pointer."""
    questions: list[QuestionView]
    next: NextPointer


async def build_section_view(
    store: GraphStore, linker: SectionLinker, section: Section
) -> SectionView:
    questions = []
    for question in await store.get_ordered_questions(section.id):
        answers = await store.get_answers(question.id)
        questions.append(QuestionView(**question.model_dump(), answers=answers))
    return SectionView(
        **section.model_dump(),
        questions=questions,
        next=await linker.resolve_section_next(section.id),
    )


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateSectionRequest(BaseModel):
    """Body for POST /sections."""
    title: str = Field(min_length=1)
    description: Optional[str] = None


class UpdateSectionRequest(BaseModel):
    """Body for PATCH /sections/{section_id}."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class DirectNextRequest(BaseModel):
    type: Literal["SECTION"]
    # None removes the direct pointer, making the section terminal
    section: Optional[int] = None


class ConditionMapping(BaseModel):
    question: int
    # Keys are answer ids or "other"; normalised by the linker
    answers: dict[str, int]


class ConditionalNextRequest(BaseModel):
    type: Literal["CONDITION"]
    condition: ConditionMapping


ChangeNextSectionRequest = Annotated[
    Union[DirectNextRequest, ConditionalNextRequest],
    Body(discriminator="type"),
]


# ------------------------------------------------------------------
# Read endpoints
# ------------------------------------------------------------------

@router.get("/sections")
async def list_sections(
    store: GraphStore = Depends(get_graph_store),
    linker: SectionLinker = Depends(get_linker),
) -> list[SectionView]:
    """All sections, each with ordered questions and its next pointer."""
    return [
        await build_section_view(store, linker, section)
        for section in await store.get_sections()
    ]


@router.get("/sections/first")
async def get_first_section(
    store: GraphStore = Depends(get_graph_store),
    linker: SectionLinker = Depends(get_linker),
) -> SectionView:
    """The root section, where every submission starts."""
    roots = await store.get_root_sections()
    if not roots:
        raise ResourceNotFound("First section")
    if len(roots) > 1:
        raise WrongData(f"The form has {len(roots)} first sections")
    return await build_section_view(store, linker, roots[0])


@router.get("/sections/{section_id}")
async def get_section(
    section_id: int,
    store: GraphStore = Depends(get_graph_store),
    linker: SectionLinker = Depends(get_linker),
) -> SectionView:
    section = await store.get_section(section_id)
    if section is None:
        raise ResourceNotFound(f"Section #{section_id}", section_id=section_id)
    return await build_section_view(store, linker, section)


# ------------------------------------------------------------------
# Write endpoints
# ------------------------------------------------------------------

@router.post("/sections", status_code=201, dependencies=[Depends(require_unpublished)])
async def create_section(
    body: CreateSectionRequest,
    author: FormAuthor = Depends(get_author),
) -> Section:
    return await author.add_section(body.title, body.description)


@router.patch("/sections/{section_id}", dependencies=[Depends(require_unpublished)])
async def update_section(
    section_id: int,
    body: UpdateSectionRequest,
    author: FormAuthor = Depends(get_author),
) -> Section:
    return await author.edit_section(
        section_id, title=body.title, description=body.description
    )


@router.delete(
    "/sections/{section_id}", status_code=204, dependencies=[Depends(require_unpublished)]
)
async def delete_section(
    section_id: int,
    author: FormAuthor = Depends(get_author),
) -> None:
    """Delete a section with its questions and every edge into or out of it."""
    await author.delete_section(section_id)


@router.put("/sections/{section_id}/next", dependencies=[Depends(require_unpublished)])
async def change_next_section(
    section_id: int,
    body: ChangeNextSectionRequest,
    store: GraphStore = Depends(get_graph_store),
    linker: SectionLinker = Depends(get_linker),
) -> SectionView:
    """Replace the section's next relation and return the updated section.

    A ``SECTION`` body sets (or with ``null`` clears) the direct pointer; a
    ``CONDITION`` body maps every answer of a single-choice question (plus
    ``other`` when enabled) to a target section.  Either way the previous
    relation is dropped in the same transaction.
    """
    if isinstance(body, DirectNextRequest):
        await linker.set_direct_next(section_id, body.section)
    else:
        await linker.set_conditional_next(
            section_id, body.condition.question, body.condition.answers
        )
    section = await store.get_section(section_id)
    return await build_section_view(store, linker, section)
