from typing import List

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from ..deps import get_assistant, get_records
from ..errors import UpstreamUnavailable
from ..schemas.ai import (
    ChatRequest,
    ChatResponse,
    QuizRequest,
    QuizResponse,
    TaskAnalysis,
    TopicAnalysis,
    TopicRequest,
)
from ..schemas.note import WeeklySummary as WeeklySummarySchema
from ..services.ai_features import StudyAssistant
from ..services.records import RecordGateway

router = APIRouter()


def _parse(schema, result: dict):
    try:
        return schema(**result)
    except ValidationError as exc:
        raise UpstreamUnavailable("Invalid AI response format") from exc


@router.post("/ai/analyze-task/{task_id}", response_model=TaskAnalysis)
def analyze_task(task_id: str, assistant: StudyAssistant = Depends(get_assistant)):
    """Estimate effort, tips and a priority for one task."""
    return _parse(TaskAnalysis, assistant.analyze_task(task_id))


@router.post("/ai/analyze-topic", response_model=TopicAnalysis)
def analyze_topic(payload: TopicRequest, assistant: StudyAssistant = Depends(get_assistant)):
    return _parse(TopicAnalysis, assistant.analyze_topic(payload.category))


@router.post("/ai/quiz", response_model=QuizResponse)
def generate_quiz(payload: QuizRequest, assistant: StudyAssistant = Depends(get_assistant)):
    return {"quiz": assistant.generate_quiz(payload.topic, payload.difficulty, payload.questionCount)}


@router.post("/ai/weekly-summary", response_model=WeeklySummarySchema)
def weekly_summary(assistant: StudyAssistant = Depends(get_assistant)):
    """This week's summary; generated on first request, then returned as stored."""
    return assistant.generate_weekly_summary()


@router.get("/ai/weekly-summaries", response_model=List[WeeklySummarySchema])
def list_weekly_summaries(records: RecordGateway = Depends(get_records)):
    return records.list_weekly_summaries()


@router.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest, assistant: StudyAssistant = Depends(get_assistant)):
    """Study assistant chat that can read and update the user's tasks."""
    response, conversation_id = assistant.chat(request.message, request.conversation_id)
    return ChatResponse(response=response, conversation_id=conversation_id)
