"""
Translation of engine exceptions into HTTP responses
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from mission_engine.utils.exceptions import (
    ComputationError, InvalidStateTransition, MissionEngineException, NotFoundError,
    ResourceConflict, StaleRecordError, ValidationError, handle_exception
)

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ResourceConflict, status.HTTP_409_CONFLICT),
    (InvalidStateTransition, status.HTTP_409_CONFLICT),
    (StaleRecordError, status.HTTP_409_CONFLICT),
    (ComputationError, 422),
)


def status_code_for(exc: Exception) -> int:
    for exc_type, code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def engine_exception_handler(request: Request, exc: MissionEngineException) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({code}): {exc.message}")
    return JSONResponse(status_code=code, content=handle_exception(exc))


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(MissionEngineException, engine_exception_handler)
