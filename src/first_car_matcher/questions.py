"""Quiz question definitions.

The quiz UI owns presentation; these definitions exist so fixtures and
answer files can be checked against the values the quiz actually offers.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .schema import AnswerType, RawAnswer


class QuizOption(BaseModel):
    value: str
    label: str


class QuizQuestion(BaseModel):
    id: str
    title: str
    type: AnswerType
    options: list[QuizOption] = Field(default_factory=list)
    required: bool = True
    min_selections: Optional[int] = None


QUESTIONS: list[QuizQuestion] = [
    QuizQuestion(
        id="budget",
        title="Budget & financing comfort zone",
        type=AnswerType.SINGLE,
        options=[
            QuizOption(value="value", label="Value-first purchase"),
            QuizOption(value="cpo-balance", label="Certified pre-owned sweet spot"),
            QuizOption(value="premium", label="Premium peace of mind"),
        ],
    ),
    QuizQuestion(
        id="safety",
        title="Safety & crash-test expectations",
        type=AnswerType.SINGLE,
        options=[
            QuizOption(value="baseline-safety", label="Essential protections"),
            QuizOption(value="advanced-adas", label="Advanced driver assistance"),
            QuizOption(value="max-safety", label="Maximum assurance"),
        ],
    ),
    QuizQuestion(
        id="usage",
        title="How your teen will use the car",
        type=AnswerType.SINGLE,
        options=[
            QuizOption(value="daily-commute", label="Daily commute & errands"),
            QuizOption(value="shared-family", label="Shared family duty"),
            QuizOption(value="adventure", label="Weekend adventures"),
        ],
    ),
    QuizQuestion(
        id="tech",
        title="Tech & convenience priorities",
        type=AnswerType.SINGLE,
        options=[
            QuizOption(value="core-connectivity", label="Core connectivity"),
            QuizOption(value="monitoring-suite", label="Teen monitoring suite"),
            QuizOption(value="premium-tech", label="Premium tech experience"),
        ],
    ),
    QuizQuestion(
        id="timeline",
        title="Timeline & readiness",
        type=AnswerType.SINGLE,
        options=[
            QuizOption(value="two-weeks", label="Within 2 weeks"),
            QuizOption(value="month", label="Within 30-45 days"),
            QuizOption(value="researching", label="Still researching"),
        ],
    ),
    QuizQuestion(
        id="extras",
        title="Unique preferences & feel-good factors",
        type=AnswerType.MULTI,
        min_selections=1,
        options=[
            QuizOption(value="american-made", label="American-made confidence"),
            QuizOption(value="bright-color", label="Bright exterior colors"),
            QuizOption(value="eco-conscious", label="Eco-conscious pick"),
            QuizOption(value="certified-only", label="Dealer certified only"),
            QuizOption(value="flexible", label="Open to the best match"),
        ],
    ),
    QuizQuestion(
        id="notes",
        title="Anything else your concierge should know?",
        type=AnswerType.TEXT,
        required=False,
    ),
]

QUESTIONS_BY_ID: dict[str, QuizQuestion] = {q.id: q for q in QUESTIONS}


def check_answers(answers: list[RawAnswer]) -> list[str]:
    """Report answers the quiz could not have produced.

    Returns:
        Human-readable issues; empty when every answer matches the quiz.
    """
    issues = []
    seen = set()
    for answer in answers:
        question = QUESTIONS_BY_ID.get(answer.question_id)
        if question is None:
            issues.append(f"Unknown question id: {answer.question_id}")
            continue
        if answer.question_id in seen:
            issues.append(f"Duplicate answer for {answer.question_id} (first one is used)")
        seen.add(answer.question_id)

        if answer.priority is not None and not 1 <= answer.priority <= 5:
            issues.append(f"{answer.question_id}: priority {answer.priority} outside 1-5")

        if question.type == AnswerType.TEXT:
            continue

        offered = {o.value for o in question.options}
        for value in answer.selected_values:
            if value not in offered:
                issues.append(f"{answer.question_id}: '{value}' is not an offered option")
        if question.min_selections and len(answer.selected_values) < question.min_selections:
            issues.append(
                f"{answer.question_id}: needs at least {question.min_selections} selection(s)"
            )
        if question.type == AnswerType.SINGLE and len(answer.selected_values) > 1:
            issues.append(
                f"{answer.question_id}: single-choice question has "
                f"{len(answer.selected_values)} values (only the first is used)"
            )

    missing = [q.id for q in QUESTIONS if q.required and q.id not in seen]
    for question_id in missing:
        issues.append(f"No answer for {question_id}")
    return issues
