import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from api.config import settings
from api.db.session import init_db
from api.errors import ApiError, first_error_message
from api.responses import api_response, error_response
from api.auth.routing import router as auth_router
from api.videos.routing import router as videos_router
from api.comments.routing import router as comments_router
from api.likes.routing import router as likes_router
from api.tweets.routing import router as tweets_router
from api.playlists.routing import router as playlists_router
from api.subscriptions.routing import router as subscriptions_router
from api.dashboard.routing import router as dashboard_router

# Logging
_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
logging.basicConfig(
    level=_level,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)
for _logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_logger_name).setLevel(_level)

logger = logging.getLogger("vidtube")

# CORS
origins = [origin for origin in settings.CORS_ORIGINS if origin]
if not origins:
    # Development defaults - allow common dev ports
    origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - {e}")
            raise
        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} in {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


app = FastAPI(
    title="VidTube API",
    description=(
        "VidTube is the backend of a video-sharing platform: videos, comments, likes, "
        "tweets, playlists, subscriptions and channel dashboards. "
        "It is built with FastAPI and SQLModel; media is kept in an S3-compatible store."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)
app.state.limiter = limiter


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.message, exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(first_error_message(exc.errors()), 400)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(
        f"Too many requests: limit of {exc.detail} exceeded",
        429,
        headers={"Retry-After": "60"},
    )


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Prometheus metrics
Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(auth_router, prefix='/api/auth')
app.include_router(videos_router, prefix='/api/videos')
app.include_router(comments_router, prefix='/api/comments')
app.include_router(likes_router, prefix='/api/likes')
app.include_router(tweets_router, prefix='/api/tweets')
app.include_router(playlists_router, prefix='/api/playlists')
app.include_router(subscriptions_router, prefix='/api/subscriptions')
app.include_router(dashboard_router, prefix='/api/dashboard')


@app.get("/healthChecker")
def read_api_health():
    return api_response({"status": "ok"}, "Health check passed")
