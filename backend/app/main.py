# Student ID backend entrypoint: admin enrollment, student directory and guardian ID cards.

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backend.app.core.logging import setup_logging
from backend.app.core.settings import get_settings
from backend.app.api import login
from backend.app.api import admin_users
from backend.app.api import enrollments
from backend.app.api import students
from backend.app.api import scan
from backend.app.api import parent_portal
from backend.app.core.dev_seed import ensure_default_admin
from backend.app.db import base  # noqa: F401  registers every model on Base.metadata
from backend.app.db.base_class import Base
from backend.app.db.session import SessionLocal, engine

settings = get_settings()
setup_logging(settings.log_level, settings.log_file)

Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8081",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(login.router)
app.include_router(admin_users.router)
app.include_router(enrollments.router)
app.include_router(students.router)
app.include_router(scan.router)
app.include_router(parent_portal.router)


@app.get("/")
def read_root():
    return {"app": "Student ID backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def seed_default_admin():
    db = SessionLocal()
    try:
        ensure_default_admin(db)
    finally:
        db.close()
