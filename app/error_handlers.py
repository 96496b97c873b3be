from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from domain.errors import PipelineError

logger = logging.getLogger(__name__)

def attach_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PipelineError)
    async def _pipeline(request: Request, exc: PipelineError):
        logger.warning("%s on %s: %s", exc.__class__.__name__, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code,
                            content={"detail": exc.message, "error": exc.__class__.__name__})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
