import logging

from fastapi import FastAPI

from portal.config import settings
from portal.routes.audit import router as audit_router
from portal.routes.health import router as health_router
from portal.routes.me import router as me_router
from portal.routes.members import router as members_router
from portal.routes.project_roles import router as project_roles_router
from portal.routes.projects import router as projects_router
from portal.routes.roles import router as roles_router
from portal.routes.tasks import router as tasks_router
from portal.routes.users import router as users_router

def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="ops-portal-api", version="0.1.0")
    app.include_router(health_router)
    app.include_router(me_router)
    app.include_router(roles_router)
    app.include_router(users_router)
    app.include_router(projects_router)
    app.include_router(project_roles_router)
    app.include_router(members_router)
    app.include_router(tasks_router)
    app.include_router(audit_router)
    return app

app = create_app()
