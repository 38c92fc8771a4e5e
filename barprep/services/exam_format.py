"""Exam-format policy: question-kind schedules and default session sizes.

A schedule is a list of inclusive question-number ranges; numbers not covered
by any range are multiple-choice.
"""

from __future__ import annotations

from typing import NamedTuple

from barprep.db.models import QuestionTypeEnum

MC = QuestionTypeEnum.MULTIPLE_CHOICE
SA = QuestionTypeEnum.SHORT_ANSWER
ESSAY = QuestionTypeEnum.ESSAY

# Nine bar subjects, in the order the client offers them
BAR_SUBJECTS: tuple[str, ...] = (
    "constitutional-law",
    "contracts",
    "torts",
    "criminal-law",
    "evidence",
    "real-property",
    "civil-procedure",
    "family-law",
    "wills-trusts",
)

# Used when a session was created without ``total_questions``
DEFAULT_TOTALS: dict[str, int] = {
    "diagnostic-dev": 3,
    "diagnostic": 20,
    "day1": 22,  # 20 short answer + 2 performance tests
    "day2": 200,  # MBE
    "day3": 6,  # essays
    "full-exam": 228,
    "practice": 1,
}
FALLBACK_TOTAL = 20


class KindRange(NamedTuple):
    first: int
    last: int
    kind: QuestionTypeEnum


class Schedule(NamedTuple):
    ranges: tuple[KindRange, ...]
    # the ranges only apply to sessions of exactly this size (None: any size)
    applies_to_total: int | None = None


SCHEDULES: dict[str, Schedule] = {
    "diagnostic": Schedule(
        (KindRange(1, 15, MC), KindRange(16, 18, SA), KindRange(19, 20, ESSAY)),
        applies_to_total=20,
    ),
    "diagnostic-dev": Schedule(
        (KindRange(1, 1, MC), KindRange(2, 2, SA), KindRange(3, 3, ESSAY)),
    ),
    "day1": Schedule((KindRange(1, 20, SA), KindRange(21, 22, ESSAY))),
    "day2": Schedule((KindRange(1, 200, MC),)),
    "day3": Schedule((KindRange(1, 6, ESSAY),)),
    "full-exam": Schedule(
        (
            KindRange(1, 20, SA),
            KindRange(21, 22, ESSAY),
            KindRange(23, 222, MC),
            KindRange(223, 228, ESSAY),
        )
    ),
}


def default_total(test_type: str) -> int:
    return DEFAULT_TOTALS.get(test_type, FALLBACK_TOTAL)


def effective_total(test_type: str, total_questions: int | None) -> int:
    """The session's declared size, or its exam kind's default."""
    return total_questions if total_questions else default_total(test_type)


def question_kind_for(
    test_type: str, question_number: int, total_questions: int | None = None
) -> QuestionTypeEnum:
    """Which kind of question sits at *question_number* in this exam."""
    schedule = SCHEDULES.get(test_type)
    if schedule is None:
        return MC
    total = effective_total(test_type, total_questions)
    if schedule.applies_to_total is not None and total != schedule.applies_to_total:
        return MC
    for first, last, kind in schedule.ranges:
        if first <= question_number <= last:
            return kind
    return MC
