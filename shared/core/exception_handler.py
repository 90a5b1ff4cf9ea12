import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from shared.core.exceptions import ServiceError
from shared.helpers.json_response_helper import failure_response
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        wrapped = failure_response(
            message=exc.message,
            status_code=exc.status_code,
            data=exc.data
        ).model_dump()
        return JSONResponse(content=jsonable_encoder(wrapped), status_code=exc.http_status)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        wrapped = failure_response(
            message=str(exc.detail),
            status_code=AppStatusCode.NOT_FOUND if exc.status_code == 404 else AppStatusCode.OPERATION_FAILED
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=exc.status_code or 400)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = {
            ".".join(str(p) for p in err["loc"] if p != "body"): err["msg"]
            for err in exc.errors()
        }
        wrapped = failure_response(
            message="Invalid input",
            status_code=AppStatusCode.INVALID_INPUT,
            data={"errors": errors}
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=422)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s",
                         request.method, request.url.path)

        wrapped = failure_response(
            message="Internal server error",
            status_code=AppStatusCode.OPERATION_FAILED
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=500)
