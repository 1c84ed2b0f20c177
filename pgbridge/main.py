import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pgbridge.api.router import api_router
from pgbridge.core.config import settings
from pgbridge.core.database import init_db
from pgbridge.core.errors import DbError, ServerError

logger = logging.getLogger(__name__)


# Create the pool when the app starts and close all its connections at shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)
    engine = init_db(app, settings.DATABASE_URL, settings.DB_POOL_MAX)
    logger.info("Database pool ready (max=%s)", settings.DB_POOL_MAX)

    yield
    await engine.dispose()


app = FastAPI(title="pgbridge", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


# Domain errors raised by server-side logic ("@CODE description")
@app.exception_handler(ServerError)
async def server_error_handler(request: Request, exc: ServerError):
    return JSONResponse(
        status_code=exc.http_status,
        content={"error_code": exc.error_code, "description": exc.description},
    )


@app.exception_handler(DbError)
async def db_error_handler(request: Request, exc: DbError):
    logger.error(f"Database error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error"},
    )


@app.get("/")
async def root():
    return {"message": "Welcome to the pgbridge API"}
