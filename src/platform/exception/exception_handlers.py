from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.platform.exception.exceptions import BrokerConnectionError, CustomBaseError
from src.platform.logging.loguru_io import Logger


ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]

# Seconds a client should wait before retrying while the broker is unreachable
BROKER_RETRY_AFTER_SECONDS = 5


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc), 500)
    return JSONResponse(status_code=error.status_code, content={'detail': error.message})


async def broker_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.error(f'🐇 [HTTP] {request.method} {request.url.path} broker unavailable: {exc}')
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={'detail': 'Message broker unavailable'},
        headers={'Retry-After': str(BROKER_RETRY_AFTER_SECONDS)},
    )


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'detail': str(exc)})


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.exception(f'💥 [HTTP] Unhandled error on {request.method} {request.url.path}')
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': 'Internal server error'},
    )


# Starlette resolves handlers by MRO, so the broker handler wins over CustomBaseError
EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    BrokerConnectionError: broker_unavailable_handler,
    CustomBaseError: custom_error_handler,
    ValueError: value_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
