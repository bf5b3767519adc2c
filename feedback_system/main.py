# feedback_system/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging

from feedback_system.config import app_conf
from feedback_system.database import engine, init_db
from feedback_system.errors import register_exception_handlers
from feedback_system.limiter import limiter
from feedback_system.routers import auth, dashboard, feedback
from feedback_system.seed import seed_admin
from feedback_system.tasks import TaskQueue

_handlers = [logging.StreamHandler()]
if app_conf.LOG_FILE:
    _handlers.append(logging.FileHandler(app_conf.LOG_FILE, mode="a"))
logging.basicConfig(
    level=app_conf.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_handlers,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
        logger.info("Database initialized successfully")
        await seed_admin()
        app.state.task_queue.start()
        yield
    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise
    finally:
        await app.state.task_queue.shutdown()
        await engine.dispose()
        logger.info("Application shutdown")


app = FastAPI(
    title="Feedback System API",
    description="Feedback collection with admin moderation, audit trail and dashboard analytics.",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.task_queue = TaskQueue(maxsize=app_conf.TASK_QUEUE_SIZE, workers=app_conf.TASK_WORKERS)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_conf.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ------------------------ Routers ------------------------
app.include_router(auth.auth_router, prefix="/api")
app.include_router(feedback.feedback_router, prefix="/api")
app.include_router(dashboard.dashboard_router, prefix="/api")


@app.get("/api/health", tags=["health"])
async def health():
    return {"status": "healthy"}
