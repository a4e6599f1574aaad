from __future__ import annotations

from looma.game.questions.types import Question
from looma.game.sessions.types import TIMEOUT, FeedbackCategory, SelectedAnswer


def score_answer(
    *,
    is_correct: bool,
    is_subscribed: bool,
    base_points: int,
    incorrect_points: int,
    multiplier: int = 2,
) -> int:
    if is_correct:
        return base_points * multiplier if is_subscribed else base_points
    return incorrect_points


def classify_feedback(selected_answer: SelectedAnswer, question: Question) -> FeedbackCategory:
    if selected_answer is None or selected_answer is TIMEOUT:
        return FeedbackCategory.TIMED_OUT
    if question.is_correct(selected_answer):
        return FeedbackCategory.CORRECT
    return FeedbackCategory.INCORRECT
