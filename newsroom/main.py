import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom.cache import cache
from newsroom.config import settings
from newsroom.container import build_container
from newsroom.errors import register_exception_handlers
from newsroom.logging_config import configure_logging
from newsroom.middleware import IdentityMiddleware, RequestLoggingMiddleware
from newsroom.routers import articles, auth, categories, comments, images, users

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the API keeps answering from the database without Redis
    await cache.connect()
    logger.info("Newsroom API started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Newsroom API",
    description="Multi-author article publishing backend",
    version="1.0.0",
    lifespan=lifespan,
)

container = build_container(settings)
app.state.container = container

# Middleware (last added runs first)
app.add_middleware(IdentityMiddleware, codec=container.token_codec)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    # browsers reject credentialed requests to a wildcard origin
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(articles.router)
app.include_router(comments.router)
app.include_router(images.router)


@app.get("/health")
async def health():
    return {"status": "healthy"}
