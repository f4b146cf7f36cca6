"""InMemoryGraphStore — arena-backed ``GraphStore``.

Nodes live in dicts keyed by integer id; relations live in separate edge
tables (``_direct_next`` and ``_conditions``) rather than on the nodes.
This makes the store a self-contained graph snapshot: the YAML loader
builds one, tests mutate one, and tooling can validate submissions against
one without a database.

Atomicity: next-section mutations compute the new edge tables first and
install them with plain assignments, with no ``await`` in between, so no
other coroutine can observe a half-applied rewrite.
"""

from __future__ import annotations

import logging
from typing import Any

from survey_flow.interfaces import GraphStore
from survey_flow.models.graph import Answer, Condition, Question, Section

logger = logging.getLogger(__name__)


class InMemoryGraphStore(GraphStore):
    """Graph store holding every node and edge in process memory."""

    def __init__(self) -> None:
        self._sections: dict[int, Section] = {}
        self._questions: dict[int, Question] = {}
        self._answers: dict[int, Answer] = {}
        # section id -> direct next section id
        self._direct_next: dict[int, int] = {}
        self._conditions: tuple[Condition, ...] = ()

        self._next_ids = {"section": 1, "question": 1, "answer": 1}

    # ------------------------------------------------------------------
    # Seeding (synchronous, used by the YAML loader and tests)
    # ------------------------------------------------------------------

    def put_section(self, section: Section) -> None:
        self._sections[section.id] = section
        self._bump("section", section.id)

    def put_question(self, question: Question) -> None:
        self._questions[question.id] = question
        self._bump("question", question.id)

    def put_answer(self, answer: Answer) -> None:
        self._answers[answer.id] = answer
        self._bump("answer", answer.id)

    def put_condition(self, condition: Condition) -> None:
        self._conditions = self._conditions + (condition,)

    def put_direct_next(self, section_id: int, next_section_id: int) -> None:
        self._direct_next[section_id] = next_section_id

    def _bump(self, kind: str, used_id: int) -> None:
        if used_id >= self._next_ids[kind]:
            self._next_ids[kind] = used_id + 1

    def _allocate(self, kind: str) -> int:
        new_id = self._next_ids[kind]
        self._next_ids[kind] = new_id + 1
        return new_id

    def _section_question_ids(self, section_id: int) -> set[int]:
        return {q.id for q in self._questions.values() if q.section_id == section_id}

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def get_section(self, section_id: int) -> Section | None:
        return self._sections.get(section_id)

    async def get_sections(self) -> list[Section]:
        return [self._sections[k] for k in sorted(self._sections)]

    async def get_root_sections(self) -> list[Section]:
        targets = set(self._direct_next.values())
        targets.update(c.next_section_id for c in self._conditions)
        return [s for s in await self.get_sections() if s.id not in targets]

    async def get_direct_next(self, section_id: int) -> int | None:
        return self._direct_next.get(section_id)

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def get_question(self, question_id: int, section_id: int) -> Question | None:
        q = self._questions.get(question_id)
        if q is None or q.section_id != section_id:
            return None
        return q

    async def get_questions(self, section_id: int) -> list[Question]:
        return [q for q in self._questions.values() if q.section_id == section_id]

    # ------------------------------------------------------------------
    # Answers & conditions
    # ------------------------------------------------------------------

    async def get_answer(self, answer_id: int, question_id: int) -> Answer | None:
        a = self._answers.get(answer_id)
        if a is None or a.question_id != question_id:
            return None
        return a

    async def get_answers(self, question_id: int) -> list[Answer]:
        return sorted(
            (a for a in self._answers.values() if a.question_id == question_id),
            key=lambda a: a.id,
        )

    async def get_conditions(self, question_id: int) -> list[Condition]:
        return [c for c in self._conditions if c.question_id == question_id]

    async def get_section_conditions(self, section_id: int) -> list[Condition]:
        qids = self._section_question_ids(section_id)
        return [c for c in self._conditions if c.question_id in qids]

    # ------------------------------------------------------------------
    # Next-section mutations
    # ------------------------------------------------------------------

    async def set_direct_next(self, section_id: int, next_section_id: int | None) -> None:
        qids = self._section_question_ids(section_id)
        conditions = tuple(c for c in self._conditions if c.question_id not in qids)
        direct = dict(self._direct_next)
        if next_section_id is None:
            direct.pop(section_id, None)
        else:
            direct[section_id] = next_section_id

        self._conditions = conditions
        self._direct_next = direct

    async def set_conditional_next(
        self, section_id: int, question_id: int, conditions: list[Condition]
    ) -> None:
        qids = self._section_question_ids(section_id)
        kept = tuple(c for c in self._conditions if c.question_id not in qids)
        direct = dict(self._direct_next)
        direct.pop(section_id, None)
        question = self._questions[question_id].model_copy(update={"required": True})

        self._conditions = kept + tuple(conditions)
        self._direct_next = direct
        self._questions[question_id] = question

    # ------------------------------------------------------------------
    # Authoring primitives
    # ------------------------------------------------------------------

    async def create_section(self, title: str, description: str | None = None) -> Section:
        section = Section(id=self._allocate("section"), title=title, description=description)
        self._sections[section.id] = section
        return section

    async def update_section(self, section_id: int, **fields: Any) -> Section:
        section = self._sections[section_id].model_copy(update=fields)
        self._sections[section_id] = section
        return section

    async def delete_section(self, section_id: int) -> None:
        qids = self._section_question_ids(section_id)
        self._conditions = tuple(
            c
            for c in self._conditions
            if c.question_id not in qids and c.next_section_id != section_id
        )
        self._direct_next = {
            src: dst
            for src, dst in self._direct_next.items()
            if src != section_id and dst != section_id
        }
        self._answers = {k: a for k, a in self._answers.items() if a.question_id not in qids}
        self._questions = {k: q for k, q in self._questions.items() if k not in qids}
        del self._sections[section_id]

    async def create_question(
        self, section_id: int, *, previous_question_id: int | None, **fields: Any
    ) -> Question:
        # The question currently sitting where the new one goes
        successor = next(
            (
                q
                for q in self._questions.values()
                if q.section_id == section_id
                and q.previous_question_id == previous_question_id
            ),
            None,
        )
        question = Question(
            id=self._allocate("question"),
            section_id=section_id,
            previous_question_id=previous_question_id,
            **fields,
        )
        self._questions[question.id] = question
        if successor is not None:
            self._questions[successor.id] = successor.model_copy(
                update={"previous_question_id": question.id}
            )
        return question

    async def update_question(self, question_id: int, **fields: Any) -> Question:
        # Re-validate so the model's own coercions (FREEFIELD has_other) apply
        data = {**self._questions[question_id].model_dump(), **fields}
        question = Question(**data)
        self._questions[question_id] = question
        return question

    async def delete_question(self, question_id: int) -> None:
        question = self._questions.pop(question_id)
        for q in list(self._questions.values()):
            if q.section_id == question.section_id and q.previous_question_id == question_id:
                self._questions[q.id] = q.model_copy(
                    update={"previous_question_id": question.previous_question_id}
                )
        self._answers = {k: a for k, a in self._answers.items() if a.question_id != question_id}
        self._conditions = tuple(c for c in self._conditions if c.question_id != question_id)

    async def relink_questions(self, section_id: int, ordered_ids: list[int]) -> None:
        previous: int | None = None
        relinked: dict[int, Question] = {}
        for qid in ordered_ids:
            relinked[qid] = self._questions[qid].model_copy(
                update={"previous_question_id": previous}
            )
            previous = qid
        self._questions = {**self._questions, **relinked}

    async def create_answer(self, question_id: int, title: str) -> Answer:
        answer = Answer(id=self._allocate("answer"), question_id=question_id, title=title)
        self._answers[answer.id] = answer
        return answer

    async def update_answer(self, answer_id: int, title: str) -> Answer:
        answer = self._answers[answer_id].model_copy(update={"title": title})
        self._answers[answer_id] = answer
        return answer

    async def delete_answer(self, answer_id: int) -> None:
        del self._answers[answer_id]

    async def delete_answers(self, question_id: int) -> None:
        self._answers = {k: a for k, a in self._answers.items() if a.question_id != question_id}
