from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_TOPIC = "general"


class QuestionType(str, Enum):
    MCQ = "mcq"
    CODING = "coding"
    SUBJECTIVE = "subjective"


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class Option:
    text: str
    is_correct: bool = False


@dataclass(frozen=True)
class Question:
    id: str
    title: str
    type: str
    difficulty: str
    topic: Optional[str] = None
    category: Optional[str] = None
    description: str = ""
    options: List[Option] = field(default_factory=list)
    hints: List[str] = field(default_factory=list)
    solution: Optional[dict] = None
    tags: List[str] = field(default_factory=list)
    companies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class QuizStats:
    total_attempts: int = 0
    average_score: float = 0.0
    highest_score: float = 0.0
    # starts above every real score so the first completion always lowers it
    lowest_score: float = 100.0


@dataclass(frozen=True)
class Quiz:
    id: str
    title: str
    question_ids: List[str]
    passing_score: float = 60.0
    description: str = ""
    type: Optional[str] = None
    difficulty: Optional[str] = None
    category: List[str] = field(default_factory=list)
    time_limit: Optional[int] = None
    total_marks: Optional[int] = None
    is_published: bool = True
    is_active: bool = True
    stats: QuizStats = field(default_factory=QuizStats)


@dataclass(frozen=True)
class Verdict:
    is_correct: bool
    marks_awarded: float


@dataclass(frozen=True)
class AnswerRecord:
    question_id: str
    answer: Any = None
    is_correct: bool = False
    marks_awarded: float = 0.0
    time_spent: int = 0
    is_flagged: bool = False


@dataclass(frozen=True)
class TopicScore:
    topic: str
    correct: int
    total: int
    percentage: float


@dataclass(frozen=True)
class DifficultyScore:
    correct: int = 0
    total: int = 0


@dataclass(frozen=True)
class ResultsSummary:
    score: float
    percentage: float
    correct_answers: int
    incorrect_answers: int
    skipped_questions: int
    total_questions: int
    is_passed: bool
    time_spent: int
    topic_breakdown: List[TopicScore]
    difficulty_breakdown: Dict[str, DifficultyScore]


@dataclass
class Attempt:
    id: str
    user_id: str
    quiz_id: str
    start_time: datetime
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    answers: List[AnswerRecord] = field(default_factory=list)
    end_time: Optional[datetime] = None
    total_time_spent: Optional[int] = None
    results: Optional[ResultsSummary] = None
    rank: Optional[int] = None
    percentile: Optional[int] = None

    def upsert_answer(self, record: AnswerRecord) -> None:
        """One record per question: a resubmission replaces the earlier one in place."""
        for idx, ans in enumerate(self.answers):
            if ans.question_id == record.question_id:
                self.answers[idx] = record
                return
        self.answers.append(record)
