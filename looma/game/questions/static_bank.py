from __future__ import annotations

from looma.game.questions.types import AnswerOption, Question, QuestionKind


def _choices(*texts: str) -> tuple[AnswerOption, ...]:
    return tuple(
        AnswerOption(option_id=option_id, text=text)
        for option_id, text in zip("ABCD", texts)
    )


_DEFAULT_BATCH: tuple[Question, ...] = (
    Question(
        question_id="default_001",
        kind=QuestionKind.MULTIPLE_CHOICE,
        text="What is the capital of France?",
        options=_choices("London", "Paris", "Berlin", "Madrid"),
        correct_answer="B",
    ),
    Question(
        question_id="default_002",
        kind=QuestionKind.TRUE_FALSE,
        text="Water boils at 100 degrees Celsius at sea level.",
        correct_answer="True",
    ),
    Question(
        question_id="default_003",
        kind=QuestionKind.MULTIPLE_CHOICE,
        text="Which planet is known as the Red Planet?",
        options=_choices("Venus", "Mars", "Jupiter", "Saturn"),
        correct_answer="B",
    ),
    Question(
        question_id="default_004",
        kind=QuestionKind.TRUE_FALSE,
        text="The Great Wall of China is visible from space with the naked eye.",
        correct_answer="False",
    ),
    Question(
        question_id="default_005",
        kind=QuestionKind.MULTIPLE_CHOICE,
        text="Which of these is not a primary color?",
        options=_choices("Red", "Blue", "Green", "Yellow"),
        correct_answer="D",
    ),
)


def default_batch() -> tuple[Question, ...]:
    return _DEFAULT_BATCH
