from typing import Any, Callable, Dict, Optional, Protocol

from ..core.logger import logger
from ..domain.model import Question, QuestionType, Verdict

UNIT_MARKS = 1.0

NO_CREDIT = Verdict(is_correct=False, marks_awarded=0.0)

# external judge for non-MCQ types: (question_id, submission) -> Verdict
Judge = Callable[[str, Any], Verdict]


def is_skipped(submission: Any) -> bool:
    """Missing, blank and empty-container submissions count as skipped, not wrong."""
    if submission is None:
        return True
    if isinstance(submission, str):
        return not submission.strip()
    if isinstance(submission, (list, tuple, dict)):
        return len(submission) == 0
    return False


class Grader(Protocol):
    def grade(self, question: Question, submission: Any) -> Verdict: ...


class MultipleChoiceGrader:
    """Exact text match against the option flagged correct."""

    def grade(self, question: Question, submission: Any) -> Verdict:
        correct = next((opt for opt in question.options if opt.is_correct), None)
        if correct is None:
            logger.warning("MCQ has no correct option", question_id=question.id)
            return NO_CREDIT
        if isinstance(submission, str) and submission == correct.text:
            return Verdict(is_correct=True, marks_awarded=UNIT_MARKS)
        return NO_CREDIT


class UngradedGrader:
    def grade(self, question: Question, submission: Any) -> Verdict:
        return NO_CREDIT


class JudgeGrader:
    def __init__(self, judge: Judge) -> None:
        self.judge = judge

    def grade(self, question: Question, submission: Any) -> Verdict:
        return self.judge(question.id, submission)


class GraderRegistry:
    def __init__(self, fallback: Optional[Grader] = None) -> None:
        self._graders: Dict[str, Grader] = {}
        self.fallback = fallback or UngradedGrader()

    def register(self, question_type: str, grader: Grader) -> None:
        self._graders[str(question_type)] = grader

    def grader_for(self, question_type: str) -> Grader:
        return self._graders.get(question_type, self.fallback)

    def grade(self, question: Question, submission: Any) -> Verdict:
        if is_skipped(submission):
            return NO_CREDIT
        return self.grader_for(question.type).grade(question, submission)


def default_registry(judges: Optional[Dict[str, Judge]] = None) -> GraderRegistry:
    registry = GraderRegistry()
    registry.register(QuestionType.MCQ.value, MultipleChoiceGrader())
    for question_type, judge in (judges or {}).items():
        registry.register(question_type, JudgeGrader(judge))
    return registry
