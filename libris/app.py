#!/usr/bin/env python3

import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from libris.routes import api
from libris.core import db
from libris.core.exceptions import LibrisAPIError, ValidationError
from libris.configs import OPTIONS, DEBUG, ALLOWED_ORIGINS, TESTING
from libris import __version__ as VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not TESTING:
        db.init()
    yield


app = FastAPI(
    title="Libris API",
    description="Libris: a small library catalog and lending system",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration = (time.perf_counter() - start) * 1000
    level = (
        logging.ERROR if response.status_code >= 500 else
        logging.WARNING if response.status_code >= 400 else
        logging.INFO
    )
    logger.log(level, f"{request.method} {request.url.path} - {response.status_code} - {duration:.0f}ms")
    return response


@app.exception_handler(LibrisAPIError)
async def libris_error_handler(request: Request, exc: LibrisAPIError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        content = {"message": exc.message} if DEBUG else {"message": "Internal server error"}
        return JSONResponse(status_code=exc.status_code, content=content)
    return libris_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return libris_response(ValidationError.from_pydantic(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(status_code=404, content={
            "message": f"Route {request.url.path} not found",
            "method": request.method,
        })
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = {"message": "Internal server error"}
    if DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def libris_response(exc: LibrisAPIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api.router, prefix="/api")

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=OPTIONS["log_level"].upper())
    uvicorn.run("libris.app:app", **OPTIONS)
