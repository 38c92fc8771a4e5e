"""Unit tests for exam question-kind schedules and default sizes."""

import pytest

from barprep.db.models import QuestionTypeEnum
from barprep.services.exam_format import (
    BAR_SUBJECTS,
    FALLBACK_TOTAL,
    default_total,
    effective_total,
    question_kind_for,
)

MC = QuestionTypeEnum.MULTIPLE_CHOICE
SA = QuestionTypeEnum.SHORT_ANSWER
ESSAY = QuestionTypeEnum.ESSAY


@pytest.mark.parametrize(
    "number, expected",
    [(1, MC), (15, MC), (16, SA), (18, SA), (19, ESSAY), (20, ESSAY)],
)
def test_standard_diagnostic_schedule(number, expected):
    assert question_kind_for("diagnostic", number, 20) is expected
    # no explicit total falls back to the default of 20
    assert question_kind_for("diagnostic", number) is expected


def test_non_standard_diagnostic_is_all_multiple_choice():
    assert all(question_kind_for("diagnostic", n, 10) is MC for n in range(1, 11))


def test_dev_diagnostic_schedule():
    assert [question_kind_for("diagnostic-dev", n) for n in (1, 2, 3)] == [MC, SA, ESSAY]


@pytest.mark.parametrize(
    "test_type, number, expected",
    [
        ("day1", 1, SA),
        ("day1", 20, SA),
        ("day1", 21, ESSAY),
        ("day1", 22, ESSAY),
        ("day2", 1, MC),
        ("day2", 200, MC),
        ("day3", 1, ESSAY),
        ("day3", 6, ESSAY),
        ("full-exam", 20, SA),
        ("full-exam", 21, ESSAY),
        ("full-exam", 23, MC),
        ("full-exam", 222, MC),
        ("full-exam", 223, ESSAY),
        ("full-exam", 228, ESSAY),
    ],
)
def test_exam_day_schedules(test_type, number, expected):
    assert question_kind_for(test_type, number) is expected


@pytest.mark.parametrize("test_type", ["practice", "diagnostic-single-mc", "anything"])
def test_unscheduled_kinds_are_multiple_choice(test_type):
    assert question_kind_for(test_type, 1) is MC


def test_default_totals():
    assert default_total("diagnostic-dev") == 3
    assert default_total("diagnostic") == 20
    assert default_total("day1") == 22
    assert default_total("day2") == 200
    assert default_total("day3") == 6
    assert default_total("full-exam") == 228
    assert default_total("practice") == 1
    assert default_total("unknown") == FALLBACK_TOTAL == 20


def test_effective_total_prefers_declared_size():
    assert effective_total("diagnostic", 3) == 3
    assert effective_total("diagnostic", None) == 20


def test_nine_bar_subjects():
    assert len(BAR_SUBJECTS) == 9
    assert "constitutional-law" in BAR_SUBJECTS
