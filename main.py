"""Application entry point for the Calora calorie tracking API.

Defines the FastAPI app, middleware, exception handlers and includes the API
routers from the `api` package. The `lifespan` handler builds the store
client from the environment, creates the schema, and disposes of the
connections on shutdown.
"""

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from core.config import get_settings
from core.exceptions import DatabaseError
from core.error_handlers import register_exception_handlers
from core.logger import get_logger
from database import StoreClient
from database.deps import get_store
from api.food_entries import router as food_entries_router
from api.users import router as users_router
from api.maintenance import router as maintenance_router

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Fastapi lifespan context: own the store client for the process lifetime."""
    settings = get_settings()
    store = StoreClient.from_settings(settings)
    store.init_db()
    app.state.store = store
    logger.info("Calora API started (env=%s)", settings.environment)
    try:
        yield
    finally:
        app.state.store = None
        store.dispose()


app = FastAPI(title="Calora API", version="1.0.0", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their responses."""
    logger.info("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response
    except Exception:
        logger.exception("Request error: %s %s", request.method, request.url.path)
        raise


@app.get("/health")
def health(store: StoreClient = Depends(get_store)):
    """Return basic health status and database connectivity.

    Raises:
        DatabaseError: If database connection fails.
    """
    try:
        store.ping()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.exception("Health check failed")
        raise DatabaseError(f"Database health check failed: {type(e).__name__}", operation="ping")


# include routers
app.include_router(food_entries_router)
app.include_router(users_router)
app.include_router(maintenance_router)


if __name__ == "__main__":
    # Allow starting the app via `python ./main.py`
    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to run the app. Install with `pip install uvicorn[standard]`. Error: %s" % exc)

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
