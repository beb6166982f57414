import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

from app.database import engine
from app.errors import ConflictError, InvalidArgumentError, NewsroomError, NotFoundError
from app.logging_config import setup_logging
from app.middleware import TimingMiddleware
from app.routers import articles, categories, metrics, users

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Newsroom API %s starting", VERSION)
    yield
    await engine.dispose()


app = FastAPI(
    title="Newsroom API",
    description="Articles, categories and reader engagement for a news site",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Domain errors -> HTTP
# ---------------------------------------------------------------------------

def _error_response(status_code: int, exc: NewsroomError) -> JSONResponse:
    body = {"detail": exc.message, "code": exc.code}
    body.update({k: v for k, v in exc.context.items() if v is not None})
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.info("%s %s -> 404: %s", request.method, request.url.path, exc.message)
    return _error_response(404, exc)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    logger.info("%s %s -> 409: %s", request.method, request.url.path, exc.message)
    return _error_response(409, exc)


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    logger.info("%s %s -> 400: %s", request.method, request.url.path, exc.message)
    return _error_response(400, exc)


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def database_unavailable_handler(request: Request, exc: Exception):
    logger.warning("%s %s -> 503: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


# Routers
app.include_router(articles.router)
app.include_router(categories.router)
app.include_router(users.router)
app.include_router(metrics.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
