from typing import List, Optional
from pydantic import BaseModel

class OptionOut(BaseModel):
    text: str

class QuestionOut(BaseModel):
    id: str
    title: str
    description: str = ""
    type: str
    category: Optional[str] = None
    topic: Optional[str] = None
    difficulty: str
    options: List[OptionOut] = []
    hints: List[str] = []
    tags: List[str] = []
    companies: List[str] = []

class QuizStatsOut(BaseModel):
    totalAttempts: int
    averageScore: float
    highestScore: float
    lowestScore: float

class QuizListItem(BaseModel):
    id: str
    title: str
    description: str = ""
    type: Optional[str] = None
    difficulty: Optional[str] = None
    category: List[str] = []
    questionCount: int
    timeLimit: Optional[int] = None
    passingScore: float
    totalMarks: Optional[int] = None
    stats: QuizStatsOut

class QuizOut(QuizListItem):
    questions: List[QuestionOut]

class HintsOut(BaseModel):
    hints: List[str]

class SolutionCode(BaseModel):
    python: Optional[str] = None
    javascript: Optional[str] = None
    java: Optional[str] = None
    cpp: Optional[str] = None

class SolutionOut(BaseModel):
    approach: Optional[str] = None
    code: SolutionCode = SolutionCode()
    timeComplexity: Optional[str] = None
    spaceComplexity: Optional[str] = None
