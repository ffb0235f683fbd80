from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .quiz_schemas import QuizOut

class AnswerIn(BaseModel):
    questionId: str = Field(..., min_length=1)
    # free-form: option text, code, essay, or a structured value
    answer: Any = None
    timeSpent: int = Field(0, ge=0, description="Seconds spent on the question")
    isFlagged: bool = False

class SubmitIn(BaseModel):
    answers: List[AnswerIn] = []

class AttemptHandleOut(BaseModel):
    id: str
    startTime: str
    status: str

class StartAttemptOut(BaseModel):
    attempt: AttemptHandleOut
    quiz: QuizOut

class AnswerAckOut(BaseModel):
    success: bool = True
    message: str = "Answer saved"

class TopicScoreOut(BaseModel):
    topic: str
    correct: int
    total: int
    percentage: float

class DifficultyScoreOut(BaseModel):
    correct: int = 0
    total: int = 0

class DifficultyBreakdownOut(BaseModel):
    easy: DifficultyScoreOut = DifficultyScoreOut()
    medium: DifficultyScoreOut = DifficultyScoreOut()
    hard: DifficultyScoreOut = DifficultyScoreOut()

class ResultsOut(BaseModel):
    id: str
    score: float
    percentage: float
    correctAnswers: int
    incorrectAnswers: int
    skippedQuestions: int
    totalQuestions: int
    isPassed: bool
    timeSpent: int
    topicWiseScore: List[TopicScoreOut]
    difficultyWiseScore: DifficultyBreakdownOut
    rank: Optional[int] = None
    percentile: Optional[int] = None

class SubmitOut(BaseModel):
    message: str = "Quiz submitted successfully"
    statsUpdated: bool
    results: ResultsOut

class AnsweredQuestionOut(BaseModel):
    questionId: str
    title: Optional[str] = None
    answer: Any = None
    isCorrect: Optional[bool] = None
    marksAwarded: Optional[float] = None
    timeSpent: int = 0
    isFlagged: bool = False
    solution: Optional[Dict[str, Any]] = None

class AttemptQuizRef(BaseModel):
    id: str
    title: Optional[str] = None
    passingScore: Optional[float] = None

class AttemptDetailOut(BaseModel):
    id: str
    status: str
    startTime: str
    endTime: Optional[str] = None
    totalTimeSpent: Optional[int] = None
    quiz: AttemptQuizRef
    answers: List[AnsweredQuestionOut]
    results: Optional[ResultsOut] = None

class AttemptQuizSummary(BaseModel):
    id: str
    title: Optional[str] = None
    type: Optional[str] = None
    difficulty: Optional[str] = None

class AttemptListItem(BaseModel):
    id: str
    quiz: AttemptQuizSummary
    status: str
    score: float
    percentage: float
    isPassed: bool
    startTime: str
    endTime: Optional[str] = None
    totalTimeSpent: Optional[int] = None

class AttemptListOut(BaseModel):
    count: int
    total: int
    attempts: List[AttemptListItem]

class TopicStrengthOut(BaseModel):
    topic: str
    correct: int
    total: int
    percentage: float

class AnalyticsOut(BaseModel):
    totalAttempts: int
    averageScore: float
    bestScore: float
    passRate: float
    totalTimeSpent: int
    topicStrengths: List[TopicStrengthOut]
    difficultyBreakdown: DifficultyBreakdownOut
