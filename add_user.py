"""Seed a demo account with a handful of study tasks."""
from datetime import date, timedelta

from sqlmodel import select

from studytrack.database import create_tables, get_session
from studytrack.models import User
from studytrack.routers.auth import get_password_hash
from studytrack.services.facade import TaskService
from studytrack.services.gateway import TaskGateway
from studytrack.services.store import stores

EMAIL = "test@example.com"
PASSWORD = "password"

SAMPLE_TASKS = [
    {"title": "Calculus problem set 4", "category": "homework", "priority": "high", "progress": 40, "days": 2},
    {"title": "Read chapter 7: cell biology", "category": "revision", "priority": "medium", "progress": 0, "days": 4},
    {"title": "History essay outline", "category": "projects", "priority": "medium", "progress": 75, "days": 6},
    {"title": "Chemistry midterm review", "category": "revision", "priority": "high", "progress": 100, "days": -1},
]

# Create tables if not exist
create_tables()

with get_session() as db:
    user = db.exec(select(User).where(User.email == EMAIL)).first()
    if user:
        print("User already exists")
    else:
        user = User(email=EMAIL, hashed_password=get_password_hash(PASSWORD))
        db.add(user)
        db.commit()
        db.refresh(user)

        user_id = str(user.id)
        service = TaskService(TaskGateway(db, user_id), stores.get(user_id))
        for sample in SAMPLE_TASKS:
            service.create_task(
                {
                    "title": sample["title"],
                    "category": sample["category"],
                    "priority": sample["priority"],
                    "progress": sample["progress"],
                    "due_date": date.today() + timedelta(days=sample["days"]),
                    "estimated_time": 2,
                }
            )
        print(f"Test user created: {EMAIL} / {PASSWORD} with {len(SAMPLE_TASKS)} tasks")
