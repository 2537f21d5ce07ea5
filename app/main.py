import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.rbac.deps import AccessDenied
from app.routes.attachments import router as attachments_router
from app.routes.auth import router as auth_router
from app.routes.comments import router as comments_router
from app.routes.health import router as health_router
from app.routes.notifications import router as notifications_router
from app.routes.projects import router as projects_router
from app.routes.tasks import router as tasks_router
from app.routes.teams import router as teams_router
from app.routes.users import router as users_router

def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={"success": False, "message": exc.message, "reason": exc.reason.value},
    )

def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="taskboard-api", version="0.1.0")
    app.add_exception_handler(AccessDenied, access_denied_handler)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(teams_router)
    app.include_router(projects_router)
    app.include_router(tasks_router)
    app.include_router(comments_router)
    app.include_router(attachments_router)
    app.include_router(notifications_router)
    return app

app = create_app()
