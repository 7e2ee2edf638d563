"""AI-assisted features: task/topic analysis, quizzes, weekly summaries, chat."""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import date, timedelta
from typing import Any, Optional, Sequence

from ..domain import CATEGORIES, PRIORITIES, Task
from ..errors import UpstreamUnavailable, ValidationFailed
from ..models import MessageRole
from .ai_gateway import AIGateway
from .assistant_tools import TOOL_SCHEMAS, run_tool
from .facade import TaskService
from .records import RecordGateway

logger = logging.getLogger(__name__)

QUIZ_DIFFICULTIES = ("easy", "medium", "hard")
TOPIC_DIFFICULTIES = ("beginner", "intermediate", "advanced")
MAX_QUIZ_QUESTIONS = 20

DEFAULT_SUGGESTIONS = [
    "Continue maintaining consistent study habits",
    "Focus on breaking larger tasks into smaller subtasks",
    "Use the timer feature to track actual study time",
]

ANALYZE_TASK_TOOL = {
    "name": "analyze_task",
    "description": "Analyze a study task and provide insights",
    "parameters": {
        "type": "object",
        "properties": {
            "analysis": {"type": "string"},
            "estimatedHours": {"type": "number"},
            "tips": {"type": "array", "items": {"type": "string"}},
            "priority": {"type": "string", "enum": list(PRIORITIES)},
            "subtasks": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["analysis", "estimatedHours", "tips", "priority"],
        "additionalProperties": False,
    },
}

ANALYZE_TOPIC_TOOL = {
    "name": "analyze_topic",
    "description": "Analyze notes and study patterns for one subject",
    "parameters": {
        "type": "object",
        "properties": {
            "analysis": {"type": "string"},
            "estimatedHours": {"type": "number"},
            "difficulty": {"type": "string", "enum": list(TOPIC_DIFFICULTIES)},
            "strategy": {"type": "array", "items": {"type": "string"}},
            "insights": {"type": "string"},
            "timeReasoning": {"type": "string"},
        },
        "required": ["analysis", "estimatedHours", "difficulty", "strategy", "insights", "timeReasoning"],
        "additionalProperties": False,
    },
}

QUIZ_TOOL = {
    "name": "generate_quiz",
    "description": "Generate multiple-choice quiz questions",
    "parameters": {
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {"type": "string"},
                        "options": {"type": "array", "items": {"type": "string"}},
                        "correctAnswer": {"type": "integer"},
                        "explanation": {"type": "string"},
                    },
                    "required": ["question", "options", "correctAnswer", "explanation"],
                },
            }
        },
        "required": ["questions"],
    },
}

TASK_SYSTEM_PROMPT = (
    "You are an AI study assistant that helps students analyze their homework and revision tasks. "
    "Provide actionable insights, study tips, time estimates, and suggestions for improvement. "
    "Use markdown formatting for better readability. When historical data is available, provide "
    "specific insights about performance trends."
)

SUMMARY_SYSTEM_PROMPT = "You are a helpful study productivity assistant that uses markdown formatting."


# ---- pure helpers ----


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday..Saturday calendar week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def weekly_insights(tasks: Sequence[Task], week_start: date) -> dict[str, Any]:
    completed = [t for t in tasks if t.completed]
    total_time = sum(t.total_time_spent for t in tasks)
    productive_days = len({t.due_date or week_start for t in tasks if t.total_time_spent > 0})
    counts = Counter(t.category for t in tasks)
    # Counter.most_common keeps first-seen order among ties.
    top_category = counts.most_common(1)[0][0] if counts else "homework"
    return {
        "totalCompleted": len(completed),
        "totalTimeSpent": total_time,
        "productiveDays": productive_days,
        "topCategory": top_category,
    }


_HEADING_RE = re.compile(r"recommendation|suggestion", re.IGNORECASE)
_BULLET_RE = re.compile(r"^(?:[-•*]|\d+[.)])\s*")


def extract_suggestions(text: str) -> list[str]:
    """Bullet or numbered lines following a recommendations heading."""
    suggestions = []
    in_section = False
    for line in text.splitlines():
        stripped = line.strip()
        if _HEADING_RE.search(stripped):
            in_section = True
            continue
        if in_section and _BULLET_RE.match(stripped):
            item = _BULLET_RE.sub("", stripped, count=1).strip()
            if item:
                suggestions.append(item)
    return suggestions


def _format_minutes(seconds: float) -> int:
    return int(round(seconds / 60))


def build_task_prompt(task: Task, history: Sequence[Any]) -> str:
    history_context = ""
    if history:
        average = sum(h.actual_time for h in history) / len(history)
        lines = [
            "",
            "",
            "Historical data for this task:",
            f"- Average completion time: {_format_minutes(average)} minutes",
            f"- Last completion time: {_format_minutes(history[0].actual_time)} minutes",
            f"- Times completed: {len(history)}",
        ]
        if task.total_time_spent:
            lines.append(f"- Current time spent: {_format_minutes(task.total_time_spent)} minutes")
        history_context = "\n".join(lines)

    return f"""Analyze this study task:
Title: {task.title}
Description: {task.description or 'No description provided'}
Category: {task.category}
Current Progress: {task.progress}%{history_context}

Please provide:
1. A detailed analysis of the task complexity and scope (use markdown formatting with headers, bold, lists)
2. Estimated time to complete (in hours)
3. 3-5 specific study tips or strategies for this task (use markdown lists)
4. Priority level recommendation (low, medium, high)
5. Suggested breakdown into smaller subtasks if applicable
6. If historical data is available, compare current performance to past performance and provide specific insights"""


def build_summary_prompt(tasks: Sequence[Task], week_start: date, week_end: date, insights: dict[str, Any]) -> str:
    total = insights["totalTimeSpent"]
    details = "\n".join(
        f"- {t.title} ({t.category}, {t.priority} priority, {t.progress}% complete)" for t in tasks[:10]
    )
    return f"""You are a study productivity assistant. Analyze this week's study data and provide a comprehensive summary using **markdown formatting**.

Week: {week_start.isoformat()} to {week_end.isoformat()}

Tasks Data:
- Total tasks: {len(tasks)}
- Completed: {insights['totalCompleted']}
- In progress: {len(tasks) - insights['totalCompleted']}
- Total study time: {total // 3600} hours {(total % 3600) // 60} minutes
- Active study days: {insights['productiveDays']}
- Most common category: {insights['topCategory']}

Task details:
{details}

Provide a response using markdown formatting:
1. **## Week Overview** - A 2-3 sentence overview using bold text and headers
2. **## Key Achievements** - Bullet list of accomplishments
3. **## Recommendations** - 3-5 specific, numbered recommendations for next week

Use markdown headers (##), **bold text**, bullet points (-), and proper formatting. Be encouraging and constructive."""


def validate_quiz(items: Any) -> list[dict[str, Any]]:
    """Keep well-formed questions; drop anything with a bad answer index."""
    if not isinstance(items, list):
        raise UpstreamUnavailable("Invalid AI response format")
    valid = []
    for item in items:
        if not isinstance(item, dict):
            continue
        options = item.get("options")
        answer = item.get("correctAnswer")
        if not isinstance(item.get("question"), str) or not item["question"].strip():
            continue
        if not isinstance(options, list) or len(options) < 2 or not all(isinstance(o, str) for o in options):
            continue
        if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < len(options):
            logger.debug("Dropping quiz item with answer index %r", answer)
            continue
        valid.append(
            {
                "question": item["question"].strip(),
                "options": options,
                "correctAnswer": answer,
                "explanation": str(item.get("explanation") or ""),
            }
        )
    if not valid:
        raise UpstreamUnavailable("AI returned no usable quiz questions")
    return valid


class StudyAssistant:
    def __init__(self, service: TaskService, records: RecordGateway, ai: AIGateway) -> None:
        self.service = service
        self.records = records
        self.ai = ai

    def analyze_task(self, task_id: str) -> dict[str, Any]:
        task = self.service.get_task(task_id)
        history = self.service.gateway.list_completion_history(task_title=task.title, limit=10)
        logger.info("Analyzing task id=%s history=%s", task.id, len(history))

        result = self.ai.complete_structured(TASK_SYSTEM_PROMPT, build_task_prompt(task, history), ANALYZE_TASK_TOOL)
        if result.get("priority") not in PRIORITIES:
            result["priority"] = task.priority
        self.records.insert_analysis(
            task.id,
            "task_analysis",
            {"title": task.title, "description": task.description, "category": task.category, "progress": task.progress},
            result,
            self.ai.model,
        )
        return result

    def analyze_topic(self, category: str) -> dict[str, Any]:
        if category not in CATEGORIES:
            raise ValidationFailed(f"Unknown category: {category}")

        notes = self.records.list_notes(folder=category)
        timed = [t for t in self.service.list_tasks() if t.category == category and t.total_time_spent > 0][:10]
        hours = [t.total_time_spent / 3600 for t in timed]
        average = sum(hours) / len(hours) if hours else 0.0

        notes_summary = "\n".join(f"- {n.title}: {(n.content or '')[:200]}" for n in notes[:5])
        prompt = f"""You are an AI study advisor analyzing notes and study patterns for the "{category}" subject.

Historical time data:
- Average time per task: {average:.2f} hours
- Recent sessions (hours): {', '.join(f'{h:.2f}' for h in hours[:5])}
- Total tasks analyzed: {len(timed)}

Notes summary:
{notes_summary}

Provide:
1. **Topic Analysis**: Key themes and areas of focus in their notes
2. **Time Estimate**: Suggested study time for next session (consider the trend in time history)
3. **Difficulty Assessment**: Rate the complexity for their level
4. **Study Strategy**: Personalized recommendations
5. **Progress Insights**: Patterns in their learning approach"""

        result = self.ai.complete_structured(
            "You are an expert study advisor. Always respond with valid JSON.", prompt, ANALYZE_TOPIC_TOOL
        )
        logger.info("Topic analysed category=%s notes=%s timed_tasks=%s", category, len(notes), len(timed))
        return result

    def generate_quiz(self, topic: str, difficulty: str = "medium", question_count: int = 5) -> list[dict[str, Any]]:
        topic = (topic or "").strip()
        if not topic:
            raise ValidationFailed("Topic is required")
        if difficulty not in QUIZ_DIFFICULTIES:
            raise ValidationFailed(f"difficulty must be one of: {', '.join(QUIZ_DIFFICULTIES)}")
        if not 1 <= question_count <= MAX_QUIZ_QUESTIONS:
            raise ValidationFailed(f"question_count must be between 1 and {MAX_QUIZ_QUESTIONS}")

        prompt = (
            f"Create {question_count} multiple-choice questions at {difficulty} difficulty about: {topic}.\n"
            "Each question needs 4 options, the zero-based index of the correct option, "
            "and a short explanation of the answer."
        )
        result = self.ai.complete_structured(
            "You are a helpful tutor who writes accurate, clear quiz questions for students.", prompt, QUIZ_TOOL
        )
        return validate_quiz(result.get("questions"))[:question_count]

    def generate_weekly_summary(self, today: Optional[date] = None):
        """Return this week's summary, generating and storing it at most once."""
        week_start, week_end = week_bounds(today or date.today())
        existing = self.records.find_weekly_summary(week_start, week_end)
        if existing is not None:
            logger.debug("Weekly summary already exists week_start=%s", week_start)
            return existing

        tasks = self.service.list_tasks()
        insights = weekly_insights(tasks, week_start)
        text = self.ai.complete_text(SUMMARY_SYSTEM_PROMPT, build_summary_prompt(tasks, week_start, week_end, insights))
        insights["suggestions"] = extract_suggestions(text) or list(DEFAULT_SUGGESTIONS)

        summary = self.records.insert_weekly_summary(week_start, week_end, text, insights)
        logger.info("Weekly summary stored week_start=%s", week_start)
        return summary

    # ---- chat ----

    def _system_prompt(self) -> str:
        prompt = (
            "You are an AI study assistant helping students manage their homework and study tasks effectively."
        )
        tasks = self.service.list_tasks()[:10]
        if tasks:
            prompt += "\n\nCurrent tasks overview:"
            for t in tasks:
                state = "completed" if t.completed else f"{t.progress}% done"
                prompt += f"\n- {t.title} [id {t.id}] ({t.category}, {t.priority} priority, {state})"
        prompt += (
            "\n\nProvide helpful, encouraging advice about study habits, task management, and academic success. "
            "Use the task tools when the student asks to list, add, update or complete tasks."
        )
        return prompt

    def chat(self, message: str, conversation_id: str | None = None) -> tuple[str, str]:
        message = (message or "").strip()
        if not message:
            raise ValidationFailed("Message is required")

        conversation = self.records.get_or_create_conversation(conversation_id, message)
        self.records.add_message(conversation.id, MessageRole.USER, message)

        messages: list[Any] = [{"role": "system", "content": self._system_prompt()}]
        messages += [
            {"role": m.role.value if hasattr(m.role, "value") else m.role, "content": m.content}
            for m in self.records.list_messages(conversation.id)
        ]

        reply = self.ai.create(messages, tools=TOOL_SCHEMAS, tool_choice="auto")
        calls = getattr(reply, "tool_calls", None) or []
        if calls:
            messages.append(
                {
                    "role": "assistant",
                    "content": reply.content or "",
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.function.name, "arguments": call.function.arguments},
                        }
                        for call in calls
                    ],
                }
            )
            for call in calls:
                logger.info("Assistant tool call %s", call.function.name)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": run_tool(self.service, call.function.name, call.function.arguments),
                    }
                )
            reply = self.ai.create(messages)

        answer = reply.content or ""
        self.records.add_message(conversation.id, MessageRole.ASSISTANT, answer)
        return answer, conversation.id
