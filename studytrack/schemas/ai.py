from pydantic import BaseModel
from typing import List, Optional


class TaskAnalysis(BaseModel):
    analysis: str
    estimatedHours: float
    tips: List[str]
    priority: str
    subtasks: Optional[List[str]] = None


class TopicRequest(BaseModel):
    category: str


class TopicAnalysis(BaseModel):
    analysis: str
    estimatedHours: float
    difficulty: str
    strategy: List[str]
    insights: str
    timeReasoning: str


class QuizRequest(BaseModel):
    topic: str
    difficulty: str = "medium"
    questionCount: int = 5


class QuizQuestion(BaseModel):
    question: str
    options: List[str]
    correctAnswer: int
    explanation: str


class QuizResponse(BaseModel):
    quiz: List[QuizQuestion]


class ChatRequest(BaseModel):
    message: str
    conversation_id: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    conversation_id: str
