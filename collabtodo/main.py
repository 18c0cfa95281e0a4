import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from collabtodo.core.config import settings
from collabtodo.core.database import engine, Base
from collabtodo.core.exceptions import StoreError
from collabtodo.models import user, project, membership, section, task, label, comment  # noqa: F401
from collabtodo.routers import health, projects, sections, tasks, labels, comments, users, views

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="CollabTodo API",
    version="0.1.0"
)


# Erreurs métier -> 400 avec le message lisible
@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=400, content={"detail": exc.message})

@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": message})


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(projects.router)
app.include_router(sections.router)
app.include_router(tasks.router)
app.include_router(labels.router)
app.include_router(comments.router)
app.include_router(users.router)
app.include_router(views.router)
