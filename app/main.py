from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.classes.classes_router import router as classes_router
from app.api.v1.classes.schedules_router import router as schedules_router
from app.api.v1.conflicts.router import router as conflicts_router
from app.api.v1.duplication.router import router as duplication_router
from app.api.v1.sections.sections_router import router as sections_router
from app.api.v1.semesters.router import router as semesters_router
from app.api.v1.teacher_assignments.router import router as teacher_assignments_router
from app.api.v1.workload.router import router as workload_router


def create_app() -> FastAPI:
    app = FastAPI(title="Term Planning Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(semesters_router)
    app.include_router(sections_router)
    app.include_router(classes_router)
    app.include_router(schedules_router)
    app.include_router(conflicts_router)
    app.include_router(teacher_assignments_router)
    app.include_router(workload_router)
    app.include_router(duplication_router)

    return app


app = create_app()
