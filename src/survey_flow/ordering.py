"""Order resolver — linearizes a section's questions.

Questions carry a ``previous_question_id`` pointer; the section order is the
chain that starts at the unique question with no predecessor.  The order is
recomputed from the pointers on every call, so callers can never observe a
stale cursor after a reorder.

A well-formed chain has exactly one head, no fork (two questions naming the
same predecessor), no cycle, and reaches every question of the section.
Anything else raises :class:`GraphIntegrityError`.
"""

from __future__ import annotations

from typing import Iterable

from survey_flow.errors import GraphIntegrityError
from survey_flow.models.graph import Question


def resolve_order(questions: Iterable[Question], section_id: int | None = None) -> list[int]:
    """Return the question ids of one section in chain order.

    Args:
        questions: every question of the section, in any order
        section_id: only used to locate errors

    Returns:
        Ordered question ids; empty for an empty section.

    Raises:
        GraphIntegrityError: zero or several heads, a fork, a cycle, or
            questions unreachable from the head.
    """
    by_id = {q.id: q for q in questions}
    if not by_id:
        return []

    heads = [q.id for q in by_id.values() if q.previous_question_id is None]
    if len(heads) != 1:
        raise GraphIntegrityError(
            f"Section #{section_id} has {len(heads)} first questions, expected 1",
            section_id=section_id,
        )

    # previous id -> successor id
    successors: dict[int, int] = {}
    for q in by_id.values():
        if q.previous_question_id is None:
            continue
        if q.previous_question_id in successors:
            raise GraphIntegrityError(
                f"Question #{q.previous_question_id} in section #{section_id} "
                f"has more than one successor",
                section_id=section_id,
                question_id=q.previous_question_id,
            )
        successors[q.previous_question_id] = q.id

    order: list[int] = []
    visited: set[int] = set()
    current: int | None = heads[0]
    while current is not None:
        if current in visited:
            raise GraphIntegrityError(
                f"Cycle detected at question #{current} in section #{section_id}",
                section_id=section_id,
                question_id=current,
            )
        visited.add(current)
        order.append(current)
        current = successors.get(current)

    if len(order) != len(by_id):
        unreached = sorted(set(by_id) - visited)
        raise GraphIntegrityError(
            f"Questions {unreached} in section #{section_id} are not reachable "
            f"from the first question",
            section_id=section_id,
        )
    return order

