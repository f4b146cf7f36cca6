"""Tests for SubmissionValidator.

Walks the intake form (tests/fixtures/intake_form.yaml):

    1 --(10: Yes=5)--> 2 ----> 3
    1 --(10: No=6)-----------> 3

and checks section entry, question order, answer exclusivity, regex
matching, branch resolution, and the documented "other" fallback.
"""

import logging

import pytest

from survey_flow.errors import (
    BadRequest,
    FormIntegrityError,
    GraphIntegrityError,
    ResourceNotFound,
)
from survey_flow.models.graph import Condition, Question, QuestionType
from survey_flow.validator import SubmissionValidator, validate_submission

from helpers.forms import rec

# Full walk through the "smoker" branch
SMOKER_WALK = [
    rec(1, 10, answer=5),
    rec(1, 11, other="42"),
    rec(2, 20, answer=[21, 23]),
    rec(2, 24, other="Twice a month"),
    rec(3, 30, other="No"),
]


@pytest.fixture
def validator(intake_store):
    return SubmissionValidator(intake_store)


# =====================================================================
# Accepted walks
# =====================================================================


class TestValidWalks:

    @pytest.mark.asyncio
    async def test_full_smoker_walk(self, validator):
        outcome = await validator.validate_submission(SMOKER_WALK)
        assert outcome.valid is True
        assert outcome.answered == 5
        assert outcome.sections == [1, 2, 3]
        assert outcome.complete is True
        assert outcome.next_section_id is None

    @pytest.mark.asyncio
    async def test_non_smoker_skips_section_two(self, validator):
        outcome = await validator.validate_submission(
            [rec(1, 10, answer=6), rec(1, 11, other="30"), rec(3, 30, other="-")]
        )
        assert outcome.sections == [1, 3]
        assert outcome.complete is True

    @pytest.mark.asyncio
    async def test_regex_match(self, validator):
        outcome = await validator.validate_submission(
            [rec(1, 10, answer=5), rec(1, 11, other="42")]
        )
        assert outcome.valid is True
        assert outcome.complete is False
        assert outcome.next_section_id == 2

    @pytest.mark.asyncio
    async def test_prefix_is_valid(self, validator):
        outcome = await validator.validate_submission([rec(1, 10, answer=6)])
        assert outcome.answered == 1
        assert outcome.complete is False
        assert outcome.next_section_id == 3

    @pytest.mark.asyncio
    async def test_direct_pointer_resolves_next(self, validator):
        outcome = await validator.validate_submission(SMOKER_WALK[:4])
        assert outcome.next_section_id == 3
        assert outcome.complete is False

    @pytest.mark.asyncio
    async def test_empty_submission(self, validator):
        outcome = await validator.validate_submission([])
        assert outcome.answered == 0
        assert outcome.sections == []
        assert outcome.complete is False

    @pytest.mark.asyncio
    async def test_validation_is_repeatable(self, validator):
        first = await validator.validate_submission(SMOKER_WALK)
        second = await validator.validate_submission(SMOKER_WALK)
        assert first == second

    @pytest.mark.asyncio
    async def test_module_level_shortcut(self, intake_store):
        outcome = await validate_submission(intake_store, SMOKER_WALK)
        assert outcome.complete is True


# =====================================================================
# Section entry and question order
# =====================================================================


class TestPositioning:

    @pytest.mark.asyncio
    async def test_first_record_must_open_root(self, validator):
        with pytest.raises(BadRequest, match="Section #2 is not first"):
            await validator.validate_submission([rec(2, 20, answer=21)])

    @pytest.mark.asyncio
    async def test_unknown_first_section(self, validator):
        with pytest.raises(ResourceNotFound):
            await validator.validate_submission([rec(9, 10, answer=5)])

    @pytest.mark.asyncio
    async def test_wrong_next_section(self, validator):
        # Answer 5 resolves to section 2; jumping to 3 is rejected
        with pytest.raises(BadRequest, match="Bad section #3 positioning"):
            await validator.validate_submission(
                [rec(1, 10, answer=5), rec(1, 11, other="42"), rec(3, 30, other="x")]
            )

    @pytest.mark.asyncio
    async def test_leaving_incomplete_section(self, validator):
        with pytest.raises(BadRequest, match="Bad section #2 positioning"):
            await validator.validate_submission([rec(1, 10, answer=5), rec(2, 20, answer=21)])

    @pytest.mark.asyncio
    async def test_leaving_terminal_section(self, validator):
        with pytest.raises(BadRequest, match="Bad section #1 positioning"):
            await validator.validate_submission(SMOKER_WALK + [rec(1, 10, answer=5)])

    @pytest.mark.asyncio
    async def test_skipped_question(self, validator):
        with pytest.raises(BadRequest, match="Bad question #11 positioning"):
            await validator.validate_submission([rec(1, 11, other="42")])

    @pytest.mark.asyncio
    async def test_repeated_question(self, validator):
        with pytest.raises(BadRequest, match="Bad question #10 positioning"):
            await validator.validate_submission([rec(1, 10, answer=5), rec(1, 10, answer=6)])

    @pytest.mark.asyncio
    async def test_question_from_other_section(self, validator):
        with pytest.raises(ResourceNotFound, match="Question #20 on section #1"):
            await validator.validate_submission([rec(1, 20, answer=21)])


# =====================================================================
# Answer checks
# =====================================================================


class TestAnswers:

    @pytest.mark.asyncio
    async def test_regex_mismatch(self, validator):
        with pytest.raises(BadRequest, match="does not match") as exc_info:
            await validator.validate_submission([rec(1, 10, answer=5), rec(1, 11, other="abc")])
        assert exc_info.value.question_id == 11

    @pytest.mark.asyncio
    async def test_regex_must_match_whole_text(self, validator):
        with pytest.raises(BadRequest):
            await validator.validate_submission([rec(1, 10, answer=5), rec(1, 11, other="42 years")])

    @pytest.mark.asyncio
    async def test_both_answer_and_other(self, validator):
        with pytest.raises(BadRequest, match="not both"):
            await validator.validate_submission([rec(1, 10, answer=5, other="maybe")])

    @pytest.mark.asyncio
    async def test_neither_answer_nor_other(self, validator):
        with pytest.raises(BadRequest, match="is required"):
            await validator.validate_submission([rec(1, 10)])

    @pytest.mark.asyncio
    async def test_empty_other_counts_as_missing(self, validator):
        with pytest.raises(BadRequest):
            await validator.validate_submission([rec(1, 10, answer=5), rec(1, 11, other="")])

    @pytest.mark.asyncio
    async def test_unknown_answer(self, validator):
        with pytest.raises(ResourceNotFound) as exc_info:
            await validator.validate_submission([rec(1, 10, answer=999)])
        assert exc_info.value.answer_id == 999

    @pytest.mark.asyncio
    async def test_answer_of_another_question(self, validator):
        with pytest.raises(ResourceNotFound):
            await validator.validate_submission([rec(1, 10, answer=25)])

    @pytest.mark.asyncio
    async def test_list_on_single_choice(self, validator):
        with pytest.raises(BadRequest, match="single answer"):
            await validator.validate_submission([rec(1, 10, answer=[5, 6])])

    @pytest.mark.asyncio
    async def test_scalar_on_multiple_choice(self, validator):
        walk = SMOKER_WALK[:2] + [rec(2, 20, answer=21)]
        with pytest.raises(BadRequest, match="must be an array"):
            await validator.validate_submission(walk)

    @pytest.mark.asyncio
    async def test_duplicate_multiple_choice_answers(self, validator):
        walk = SMOKER_WALK[:2] + [rec(2, 20, answer=[21, 21])]
        with pytest.raises(BadRequest, match="distinct"):
            await validator.validate_submission(walk)

    @pytest.mark.asyncio
    async def test_empty_multiple_choice_list(self, validator):
        walk = SMOKER_WALK[:2] + [rec(2, 20, answer=[])]
        with pytest.raises(BadRequest, match="non-empty"):
            await validator.validate_submission(walk)

    @pytest.mark.asyncio
    async def test_other_on_question_without_other(self, validator):
        with pytest.raises(BadRequest, match="does not accept a free answer"):
            await validator.validate_submission([rec(1, 10, other="Sometimes")])


# =====================================================================
# Branch resolution and graph integrity
# =====================================================================


class TestBranching:

    @pytest.mark.asyncio
    async def test_direct_and_conditional_conflict(self, intake_store, validator):
        intake_store.put_direct_next(1, 3)
        with pytest.raises(FormIntegrityError, match="already resolved by a direct pointer"):
            await validator.validate_submission([rec(1, 10, answer=5)])

    @pytest.mark.asyncio
    async def test_explicit_condition_wins(self, partial_store):
        outcome = await validate_submission(partial_store, [rec(1, 1, answer=1)])
        assert outcome.next_section_id == 2

    @pytest.mark.asyncio
    async def test_other_text_takes_other_branch(self, partial_store):
        outcome = await validate_submission(partial_store, [rec(1, 1, other="Purple")])
        assert outcome.next_section_id == 3

    @pytest.mark.asyncio
    async def test_uncovered_answer_falls_back_to_other(self, partial_store, caplog):
        with caplog.at_level(logging.WARNING, logger="survey_flow.validator"):
            outcome = await validate_submission(
                partial_store, [rec(1, 1, answer=2), rec(3, 3, other="I like green")]
            )
        assert outcome.sections == [1, 3]
        assert outcome.complete is True
        assert "using the 'other' branch" in caplog.text

    @pytest.mark.asyncio
    async def test_uncovered_answer_without_other_branch(self, intake_store, validator):
        # Rewrite section 1's conditions so that answer 6 has no branch
        await intake_store.set_direct_next(1, None)
        intake_store.put_condition(Condition(question_id=10, answer_id=5, next_section_id=2))
        with pytest.raises(ResourceNotFound, match="answer was not found"):
            await validator.validate_submission([rec(1, 10, answer=6)])

    @pytest.mark.asyncio
    async def test_broken_chain_aborts(self, broken_store):
        with pytest.raises(GraphIntegrityError):
            await validate_submission(broken_store, [rec(1, 1, other="x")])

    @pytest.mark.asyncio
    async def test_invalid_regex_is_integrity_error(self, intake_store, validator):
        q11 = await intake_store.get_question(11, 1)
        intake_store.put_question(q11.model_copy(update={"regex": "(["}))
        with pytest.raises(FormIntegrityError, match="invalid regular expression"):
            await validator.validate_submission([rec(1, 10, answer=5), rec(1, 11, other="42")])

    @pytest.mark.asyncio
    async def test_multiple_choice_with_other_text(self, intake_store, validator):
        intake_store.put_question(
            Question(
                id=20,
                section_id=2,
                title="What do you smoke?",
                type=QuestionType.MULTIPLE_CHOICE,
                has_other=True,
                previous_question_id=None,
            )
        )
        walk = SMOKER_WALK[:2] + [rec(2, 20, other="Hookah")]
        outcome = await validator.validate_submission(walk)
        assert outcome.answered == 3
