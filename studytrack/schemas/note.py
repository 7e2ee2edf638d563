from pydantic import BaseModel
from datetime import date, datetime
from typing import Any, Dict, List, Optional


class NoteCreate(BaseModel):
    title: str
    content: str = ""
    folder: Optional[str] = None
    tags: List[str] = []
    task_id: Optional[str] = None


class NoteUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    folder: Optional[str] = None
    tags: Optional[List[str]] = None
    task_id: Optional[str] = None


class Note(BaseModel):
    id: str
    title: str
    content: str
    folder: Optional[str] = None
    tags: List[str] = []
    task_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WeeklySummary(BaseModel):
    id: str
    week_start: date
    week_end: date
    summary: str
    insights: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
