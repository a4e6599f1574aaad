from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

TRUE_ANSWER = "True"
FALSE_ANSWER = "False"
TRUE_FALSE_ANSWERS: frozenset[str] = frozenset({TRUE_ANSWER, FALSE_ANSWER})


class InvalidQuestionError(ValueError):
    pass


class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"


@dataclass(frozen=True, slots=True)
class AnswerOption:
    option_id: str
    text: str


@dataclass(frozen=True, slots=True)
class Question:
    question_id: str
    kind: QuestionKind
    text: str
    correct_answer: str
    options: tuple[AnswerOption, ...] = ()
    subject: str | None = None
    topic: str | None = None

    def __post_init__(self) -> None:
        if not self.question_id:
            raise InvalidQuestionError("question_id must not be empty")
        if self.kind is QuestionKind.TRUE_FALSE:
            if self.correct_answer not in TRUE_FALSE_ANSWERS:
                raise InvalidQuestionError(
                    f"true/false question {self.question_id} has answer {self.correct_answer!r}"
                )
            return

        option_ids = [option.option_id for option in self.options]
        if len(set(option_ids)) != len(option_ids):
            raise InvalidQuestionError(f"question {self.question_id} has duplicate option ids")
        if self.correct_answer not in option_ids:
            raise InvalidQuestionError(
                f"question {self.question_id} answer {self.correct_answer!r} is not among its options"
            )

    @property
    def answer_values(self) -> tuple[str, ...]:
        if self.kind is QuestionKind.TRUE_FALSE:
            return (TRUE_ANSWER, FALSE_ANSWER)
        return tuple(option.option_id for option in self.options)

    def is_correct(self, value: str) -> bool:
        return value == self.correct_answer

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> Question:
        """Build a question from an ``ai_game_questions`` row.

        Rows carry ``options`` as a list of ``{"id", "text"}`` objects (or null for
        true/false questions) and ``type`` as ``multiple_choice``/``true_false``.
        """
        try:
            kind = QuestionKind(str(row.get("type") or QuestionKind.MULTIPLE_CHOICE.value))
        except ValueError as exc:
            raise InvalidQuestionError(f"unknown question type {row.get('type')!r}") from exc

        raw_options = row.get("options") or []
        if not isinstance(raw_options, list):
            raise InvalidQuestionError("options must be a list")
        options: list[AnswerOption] = []
        for raw_option in raw_options:
            if not isinstance(raw_option, Mapping):
                raise InvalidQuestionError("option must be an object")
            options.append(
                AnswerOption(
                    option_id=str(raw_option.get("id", "")),
                    text=str(raw_option.get("text", "")),
                )
            )

        return cls(
            question_id=str(row.get("id") or ""),
            kind=kind,
            text=str(row.get("question") or ""),
            correct_answer=str(row.get("correct_answer") or ""),
            options=tuple(options) if kind is QuestionKind.MULTIPLE_CHOICE else (),
            subject=_optional_str(row.get("subject")),
            topic=_optional_str(row.get("topic")),
        )


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
