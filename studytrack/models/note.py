from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlmodel import JSON, Column, Field, SQLModel, UniqueConstraint


class Note(SQLModel, table=True):
    """Markdown note, optionally linked to a task."""
    __tablename__ = "notes"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    task_id: Optional[str] = Field(default=None, index=True)
    title: str
    content: str = ""
    folder: Optional[str] = Field(default=None, index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class WeeklySummary(SQLModel, table=True):
    __tablename__ = "weekly_summaries"
    __table_args__ = (UniqueConstraint("user_id", "week_start", "week_end"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    week_start: date
    week_end: date
    summary: str
    insights: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AIAnalysis(SQLModel, table=True):
    __tablename__ = "ai_analysis"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id")
    task_id: str = Field(index=True)
    analysis_type: str
    input_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    result: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    model: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
