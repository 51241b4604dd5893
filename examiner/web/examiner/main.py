"""Main entry point for the Examiner web application."""

import logging
import os
import typing as t
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from examiner.core import BootConfiguration, di, ExaminerContainer
from examiner.core.config.web import ExaminerWebSettings
from examiner.exam import AccessDenied, ExamError, InvitationStateError, NotFound, SessionStateError, \
    StorageFailure, ValidationFailure
from examiner.lib.json import FastAPIJSONResponse
from examiner.model import DeploymentEnvironment

from .route import router

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[ExamError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    AccessDenied: status.HTTP_403_FORBIDDEN,
    SessionStateError: status.HTTP_409_CONFLICT,
    InvitationStateError: status.HTTP_409_CONFLICT,
    ValidationFailure: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StorageFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(error: ExamError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


async def handle_exam_error(request: Request, exc: Exception) -> FastAPIJSONResponse:
    assert isinstance(exc, ExamError)
    code = status_for(exc)
    if code >= 500:
        logger.error("request failed", extra={"path": request.url.path, "code": exc.code}, exc_info=exc)
    return FastAPIJSONResponse({"code": exc.code, "detail": exc.message}, status_code=code)


@di.inject
def _create_app(
    config: ExaminerWebSettings = di.Provide["config.web.examiner", di.as_(ExaminerWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    root_path: Path = di.Provide["root"],
) -> FastAPI:
    app = FastAPI(
        title="Examiner",
        description="Timed, access-controlled assessment sessions",
        version="0.1.0",
    )

    if env is DeploymentEnvironment.Local and config.frontend is not None:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[
                f"http://{config.frontend.host}:{config.frontend.port}",
                f"http://localhost:{config.frontend.port}",
            ],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ExamError, handle_exam_error)
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv("__Examiner_BOOT")
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = ExaminerContainer()
        ExaminerContainer.boot(ct, **dict(boot_cf))
        ct.wire(modules=["examiner.web.examiner.main", "examiner.auth.middleware"])
        return _create_app(
            config=ExaminerWebSettings(**ct.config.web.examiner()),
            env=boot_cf.env,
            root_path=t.cast(Path, ct.root()),
        )
    return _create_app()
