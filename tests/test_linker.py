"""Tests for SectionLinker: resolving and rewriting the next-section relation.

Verifies that:
  - resolve_section_next reproduces exactly what was written
  - direct and conditional next are mutually exclusive after any rewrite
  - invalid rewrites raise the right typed error and leave the graph untouched
  - stored graphs that are both direct and conditional are reported as
    integrity errors
"""

import pytest

from survey_flow.errors import (
    FormIntegrityError,
    ResourceNotFound,
    SameElement,
    WrongData,
)
from survey_flow.linker import SectionLinker, normalize_mapping
from survey_flow.models.graph import Condition
from survey_flow.models.next import ConditionalNext, DirectNext, NoNext


@pytest.fixture
def linker(intake_store):
    return SectionLinker(intake_store)


# =====================================================================
# resolve_section_next
# =====================================================================


class TestResolve:

    @pytest.mark.asyncio
    async def test_conditional(self, linker):
        pointer = await linker.resolve_section_next(1)
        assert pointer == ConditionalNext(question=10, answers={5: 2, 6: 3})

    @pytest.mark.asyncio
    async def test_direct(self, linker):
        assert await linker.resolve_section_next(2) == DirectNext(section=3)

    @pytest.mark.asyncio
    async def test_terminal(self, linker):
        assert await linker.resolve_section_next(3) == NoNext()

    @pytest.mark.asyncio
    async def test_idempotent(self, linker):
        first = await linker.resolve_section_next(1)
        second = await linker.resolve_section_next(1)
        assert first == second

    @pytest.mark.asyncio
    async def test_unknown_section(self, linker):
        with pytest.raises(ResourceNotFound):
            await linker.resolve_section_next(99)

    @pytest.mark.asyncio
    async def test_both_direct_and_conditional_is_integrity_error(self, intake_store, linker):
        intake_store.put_direct_next(1, 3)
        with pytest.raises(FormIntegrityError, match="both a direct next section"):
            await linker.resolve_section_next(1)

    @pytest.mark.asyncio
    async def test_conditions_on_two_questions_is_integrity_error(self, intake_store, linker):
        await intake_store.set_direct_next(2, None)
        intake_store.put_condition(Condition(question_id=24, answer_id=25, next_section_id=1))
        intake_store.put_condition(Condition(question_id=20, answer_id=21, next_section_id=1))
        with pytest.raises(FormIntegrityError, match="conditions on questions"):
            await linker.resolve_section_next(2)


# =====================================================================
# set_direct_next
# =====================================================================


class TestSetDirectNext:

    @pytest.mark.asyncio
    async def test_replaces_conditions(self, intake_store, linker):
        await linker.set_direct_next(1, 3)
        assert await linker.resolve_section_next(1) == DirectNext(section=3)
        assert await intake_store.get_conditions(10) == []

    @pytest.mark.asyncio
    async def test_none_clears(self, linker):
        await linker.set_direct_next(2, None)
        assert await linker.resolve_section_next(2) == NoNext()

    @pytest.mark.asyncio
    async def test_self_reference(self, linker):
        with pytest.raises(SameElement, match="section itself"):
            await linker.set_direct_next(2, 2)

    @pytest.mark.asyncio
    async def test_unknown_target(self, linker):
        with pytest.raises(ResourceNotFound):
            await linker.set_direct_next(2, 42)
        assert await linker.resolve_section_next(2) == DirectNext(section=3)

    @pytest.mark.asyncio
    async def test_unknown_source(self, linker):
        with pytest.raises(ResourceNotFound):
            await linker.set_direct_next(42, 2)


# =====================================================================
# set_conditional_next
# =====================================================================


class TestSetConditionalNext:

    @pytest.mark.asyncio
    async def test_round_trip(self, linker):
        mapping = {25: 1, 26: 3, "other": 3}
        await linker.set_conditional_next(2, 24, mapping)
        pointer = await linker.resolve_section_next(2)
        assert isinstance(pointer, ConditionalNext)
        assert pointer.question == 24
        assert pointer.answers == mapping

    @pytest.mark.asyncio
    async def test_clears_direct_pointer(self, intake_store, linker):
        await linker.set_direct_next(2, 1)
        await linker.set_conditional_next(2, 24, {25: 1, 26: 3, "other": 3})
        assert await intake_store.get_direct_next(2) is None

    @pytest.mark.asyncio
    async def test_makes_question_required(self, intake_store, linker):
        assert (await intake_store.get_question(24, 2)).required is False
        await linker.set_conditional_next(2, 24, {25: 1, 26: 3, "other": 3})
        assert (await intake_store.get_question(24, 2)).required is True

    @pytest.mark.asyncio
    async def test_string_keys_from_json(self, linker):
        await linker.set_conditional_next(1, 10, {"5": 3, "6": 2})
        pointer = await linker.resolve_section_next(1)
        assert pointer.answers == {5: 3, 6: 2}

    @pytest.mark.asyncio
    async def test_missing_answer(self, linker):
        with pytest.raises(WrongData, match="missing answers"):
            await linker.set_conditional_next(1, 10, {5: 2})

    @pytest.mark.asyncio
    async def test_missing_other(self, linker):
        with pytest.raises(WrongData, match=r"missing answers \['other'\]"):
            await linker.set_conditional_next(2, 24, {25: 1, 26: 3})

    @pytest.mark.asyncio
    async def test_other_without_has_other(self, linker):
        with pytest.raises(WrongData, match="unknown answers"):
            await linker.set_conditional_next(1, 10, {5: 2, 6: 3, "other": 3})

    @pytest.mark.asyncio
    async def test_foreign_answer(self, linker):
        with pytest.raises(WrongData, match="unknown answers"):
            await linker.set_conditional_next(1, 10, {5: 2, 6: 3, 25: 3})

    @pytest.mark.asyncio
    async def test_self_target(self, linker):
        with pytest.raises(SameElement):
            await linker.set_conditional_next(1, 10, {5: 1, 6: 3})

    @pytest.mark.asyncio
    async def test_unknown_target(self, linker):
        with pytest.raises(ResourceNotFound):
            await linker.set_conditional_next(1, 10, {5: 2, 6: 77})

    @pytest.mark.asyncio
    async def test_question_from_another_section(self, linker):
        with pytest.raises(WrongData, match="does not belong"):
            await linker.set_conditional_next(1, 24, {25: 2, 26: 3, "other": 3})

    @pytest.mark.asyncio
    async def test_multiple_choice_rejected(self, linker):
        with pytest.raises(WrongData, match="not a single choice"):
            await linker.set_conditional_next(2, 20, {21: 1, 22: 1, 23: 1})

    @pytest.mark.asyncio
    async def test_failed_rewrite_leaves_graph_untouched(self, linker):
        before = await linker.resolve_section_next(1)
        with pytest.raises(WrongData):
            await linker.set_conditional_next(1, 10, {5: 2})
        assert await linker.resolve_section_next(1) == before


class TestNormalizeMapping:

    def test_invalid_key(self):
        with pytest.raises(WrongData, match="Invalid answer key"):
            normalize_mapping({"five": 2})

    def test_non_int_target(self):
        with pytest.raises(WrongData, match="must be a section id"):
            normalize_mapping({"5": "2"})

    def test_duplicate_after_coercion(self):
        with pytest.raises(WrongData, match="more than once"):
            normalize_mapping({"5": 2, 5: 3})
