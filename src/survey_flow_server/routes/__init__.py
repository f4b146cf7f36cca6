"""Route registration: mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from survey_flow_server.routes.config import router as config_router
from survey_flow_server.routes.questions import router as questions_router
from survey_flow_server.routes.sections import router as sections_router
from survey_flow_server.routes.submissions import router as submissions_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(sections_router, prefix=API_PREFIX)
    app.include_router(questions_router, prefix=API_PREFIX)
    app.include_router(submissions_router, prefix=API_PREFIX)
    app.include_router(config_router, prefix=API_PREFIX)
