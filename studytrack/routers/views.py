from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ..deps import get_task_service
from ..services import views
from ..services.export import task_to_dict
from ..services.facade import TaskService

router = APIRouter()


@router.get("/views/kanban")
def kanban(service: TaskService = Depends(get_task_service)):
    """Tasks grouped into todo / inProgress / done by progress."""
    board = views.kanban_board(service.list_tasks())
    return {band: [task_to_dict(t) for t in tasks] for band, tasks in board.items()}


@router.get("/views/calendar")
def calendar(
    year: Optional[int] = None,
    month: Optional[int] = None,
    service: TaskService = Depends(get_task_service),
):
    today = date.today()
    year = year or today.year
    month = month or today.month
    days = views.tasks_for_month(service.list_tasks(), year, month)
    return {
        "year": year,
        "month": month,
        "days": {str(day): [task_to_dict(t) for t in tasks] for day, tasks in sorted(days.items())},
    }


@router.get("/views/timeline")
def timeline(service: TaskService = Depends(get_task_service)):
    return [
        {
            "date": group.date.isoformat(),
            "label": group.label,
            "isPast": group.is_past,
            "isToday": group.is_today,
            "tasks": [task_to_dict(t) for t in group.tasks],
        }
        for group in views.timeline(service.list_tasks())
    ]


@router.get("/views/analytics")
def analytics(service: TaskService = Depends(get_task_service)):
    tasks = service.list_tasks()
    return {
        "stats": views.stats(tasks),
        "categories": [
            {"category": c.category, "progress": c.progress, "count": c.count}
            for c in views.average_progress_by_category(tasks)
        ],
        "completion": views.completion_breakdown(tasks),
        "trend": views.progress_trend(tasks),
    }
