import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import storage
from app.exceptions import BlogError
from app.middleware import RequestLogMiddleware
from app.routers import admin, articles, auth, categories, tags

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Send app.* records to stderr at *level*; uvicorn only configures its own loggers."""
    app_logger = logging.getLogger("app")
    app_logger.setLevel(level)
    if not app_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        app_logger.addHandler(handler)


configure_logging(settings.LOG_LEVEL)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if not storage.available:
        logger.warning("DATABASE_URL not usable; running without a database")
    yield
    # Shutdown
    await storage.dispose()

app = FastAPI(
    title="Blog Content Platform API",
    description="Categorized, paginated articles with admin-only publishing",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError):
    if exc.code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.code, content=exc.to_dict())

# Routers
app.include_router(articles.router)
app.include_router(admin.router)
app.include_router(categories.router)
app.include_router(tags.router)
app.include_router(auth.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0", "database": storage.available}
