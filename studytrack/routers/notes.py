from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from ..deps import get_records
from ..schemas.note import Note as NoteSchema, NoteCreate, NoteUpdate
from ..services.records import RecordGateway

router = APIRouter()


def _dump(model, **kwargs) -> dict:
    if hasattr(model, "model_dump"):
        return model.model_dump(**kwargs)
    return model.dict(**kwargs)


@router.get("/notes", response_model=List[NoteSchema])
def list_notes(
    folder: Optional[str] = None,
    task_id: Optional[str] = None,
    records: RecordGateway = Depends(get_records),
):
    """List notes, most recently edited first."""
    return records.list_notes(folder=folder, task_id=task_id)


@router.post("/notes", response_model=NoteSchema, status_code=status.HTTP_201_CREATED)
def create_note(note: NoteCreate, records: RecordGateway = Depends(get_records)):
    return records.create_note(_dump(note))


@router.get("/notes/{note_id}", response_model=NoteSchema)
def get_note(note_id: str, records: RecordGateway = Depends(get_records)):
    return records.get_note(note_id)


@router.put("/notes/{note_id}", response_model=NoteSchema)
def update_note(note_id: str, note: NoteUpdate, records: RecordGateway = Depends(get_records)):
    return records.update_note(note_id, _dump(note, exclude_unset=True))


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(note_id: str, records: RecordGateway = Depends(get_records)):
    records.delete_note(note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
