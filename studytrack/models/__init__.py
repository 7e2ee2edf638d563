from .task import (
    CompletionHistory,
    RecurringType,
    Subtask,
    Tag,
    Task,
    TaskCategory,
    TaskPriority,
    TaskTag,
    TimeSession,
)
from .user import User
from .conversation import Conversation, Message, MessageRole
from .note import AIAnalysis, Note, WeeklySummary

# Export all models for easy importing
__all__ = [
    "AIAnalysis",
    "CompletionHistory",
    "Conversation",
    "Message",
    "MessageRole",
    "Note",
    "RecurringType",
    "Subtask",
    "Tag",
    "Task",
    "TaskCategory",
    "TaskPriority",
    "TaskTag",
    "TimeSession",
    "User",
    "WeeklySummary",
]
