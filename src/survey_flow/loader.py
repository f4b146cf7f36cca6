"""Form loader — builds an ``InMemoryGraphStore`` from a YAML definition.

The YAML layout lists sections with their questions in display order; the
loader derives ``previous_question_id`` from that order unless a question
states ``previous`` explicitly (useful to describe a broken chain in tests).

Example::

    sections:
      - id: 1
        title: About you
        next: 2                      # direct pointer
        questions:
          - id: 10
            title: Do you smoke?
            type: SINGLE_CHOICE
            answers:
              - {id: 5, title: "Yes"}
              - {id: 6, title: "No"}
          - id: 11
            title: Age
            type: FREEFIELD
            regex: '^\\d+$'
      - id: 2
        title: Habits
        next:                        # conditional pointer
          question: 20
          answers: {21: 3, 22: 4, other: 4}

Usage::

    store = load_form("forms/intake.yaml")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from survey_flow.constants import OTHER_KEY
from survey_flow.models.graph import Answer, Condition, Question, Section
from survey_flow.store import InMemoryGraphStore

logger = logging.getLogger(__name__)


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_form(path: Path | str) -> InMemoryGraphStore:
    """Parse a YAML form definition into a populated store."""
    store = build_store(load_yaml(path))
    logger.info("Form loaded from %s", path)
    return store


def build_store(data: dict[str, Any]) -> InMemoryGraphStore:
    """Build a store from an already-parsed form definition.

    Raises:
        ValueError: if a ``next`` entry has an unknown shape.
    """
    store = InMemoryGraphStore()
    for raw_section in data.get("sections", []):
        section_id = raw_section["id"]
        store.put_section(
            Section(
                id=section_id,
                title=raw_section.get("title", f"Section {section_id}"),
                description=raw_section.get("description"),
            )
        )
        _load_questions(store, section_id, raw_section.get("questions", []))
        _load_next(store, section_id, raw_section.get("next"))
    return store


def _load_questions(
    store: InMemoryGraphStore, section_id: int, raw_questions: list[dict[str, Any]]
) -> None:
    previous: int | None = None
    for raw in raw_questions:
        answers = raw.get("answers", [])
        fields = {k: v for k, v in raw.items() if k not in ("answers", "previous")}
        question = Question(
            section_id=section_id,
            previous_question_id=raw.get("previous", previous),
            **fields,
        )
        store.put_question(question)
        for raw_answer in answers:
            store.put_answer(Answer(question_id=question.id, **raw_answer))
        previous = question.id


def _load_next(store: InMemoryGraphStore, section_id: int, raw_next: Any) -> None:
    if raw_next is None:
        return
    if isinstance(raw_next, int):
        store.put_direct_next(section_id, raw_next)
        return
    if isinstance(raw_next, dict) and "question" in raw_next:
        question_id = raw_next["question"]
        for key, target in raw_next.get("answers", {}).items():
            answer_id = None if key == OTHER_KEY else int(key)
            store.put_condition(
                Condition(
                    question_id=question_id,
                    answer_id=answer_id,
                    next_section_id=target,
                )
            )
        return
    raise ValueError(f"Unknown next definition in section {section_id}: {raw_next!r}")
