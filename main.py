from fastapi import FastAPI
from contextlib import asynccontextmanager

from netprophet import __version__
from netprophet.config import JSON_LOGS, LOG_LEVEL, SERVICE_NAME
from netprophet.database import create_db_and_tables
from netprophet.logging_config import configure_logging, get_logger
from netprophet import models  # noqa: F401  registers tables

configure_logging(log_level=LOG_LEVEL, json_logs=JSON_LOGS, service_name=SERVICE_NAME)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    create_db_and_tables()
    logger.info("startup_complete", version=__version__)
    yield


# Initialize FastAPI app
app = FastAPI(
    title="NetProphet",
    description="Predict tennis matches, wager coins and track your picks",
    version=__version__,
    lifespan=lifespan
)

# Include routers
from netprophet.routers import matches, bets, admin

app.include_router(matches.router, tags=["matches"])
app.include_router(bets.router, tags=["bets"])
app.include_router(admin.router, tags=["admin"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
