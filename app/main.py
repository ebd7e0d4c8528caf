import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from app.core.db import init_db, close_db
from app.api.v1.deduplication import router as deduplication_router
from app.api.v1.fanout import router as fanout_router
from app.api.v1.topic import router as topic_router
from app.broker.message_broker import get_broker
from app.core.config import PROJECT_NAME, VERSION
from app.core.exception_handlers import setup_exception_handlers
from app.services.retention_sweeper import start_cleanup_scheduler, stop_cleanup_scheduler

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("uvicorn")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate the ledger schema
    get_broker() # Declare exchanges, queues and consumers
    await start_cleanup_scheduler()
    yield
    await stop_cleanup_scheduler()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.include_router(fanout_router, prefix="/api/v1/fanout", tags=["Fanout Exchange"])
app.include_router(topic_router, prefix="/api/v1/topic", tags=["Topic Exchange"])
app.include_router(deduplication_router, prefix="/api/v1/deduplication", tags=["Deduplication"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
