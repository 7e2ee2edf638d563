from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from ..deps import get_records, get_task_service
from ..services.export import export_csv, export_json
from ..services.facade import TaskService
from ..services.records import RecordGateway

router = APIRouter()


@router.get("/export/json")
def export_backup(
    service: TaskService = Depends(get_task_service),
    records: RecordGateway = Depends(get_records),
):
    """Full backup: tasks with their relations, notes, tags and time sessions."""
    return export_json(
        service.list_tasks(),
        notes=records.list_notes(),
        tags=service.list_tags(),
        sessions=service.gateway.list_sessions(),
    )


@router.get("/export/csv", response_class=PlainTextResponse)
def export_tasks_csv(service: TaskService = Depends(get_task_service)):
    filename = f"study-tasks-{date.today().isoformat()}.csv"
    return PlainTextResponse(
        export_csv(service.list_tasks()),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
