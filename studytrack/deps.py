"""FastAPI dependencies wiring the per-request services."""

from fastapi import Depends
from sqlmodel import Session

from .database import get_db
from .models import User
from .routers.auth import get_current_user
from .services.ai_features import StudyAssistant
from .services.ai_gateway import AIGateway
from .services.facade import TaskService
from .services.gateway import TaskGateway
from .services.records import RecordGateway
from .services.store import stores

_ai_gateway = AIGateway()


def get_task_service(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskService:
    user_id = str(current_user.id)
    return TaskService(TaskGateway(db, user_id), stores.get(user_id))


def get_records(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RecordGateway:
    return RecordGateway(db, str(current_user.id))


def get_ai_gateway() -> AIGateway:
    return _ai_gateway


def get_assistant(
    service: TaskService = Depends(get_task_service),
    records: RecordGateway = Depends(get_records),
    ai: AIGateway = Depends(get_ai_gateway),
) -> StudyAssistant:
    return StudyAssistant(service, records, ai)
