from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
import os
import logging

from fintrack.database import close_client, create_indexes, db
from fintrack.errors import FinanceTrackerError
from fintrack.contribution_routes import contribution_router
from fintrack.project_routes import project_router

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(
    title="Project Finance Tracker",
    version="1.0.0",
    description="Password-gated project workspaces with income, expenses, call booth and contributions"
)


@app.exception_handler(FinanceTrackerError)
async def finance_tracker_error_handler(request: Request, exc: FinanceTrackerError):
    """Every domain error becomes {"error", "code"} with its own status"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "FinanceTrackerError"}
    )


@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


# Include routers
app.include_router(project_router)
app.include_router(contribution_router)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def create_db_indexes():
    await create_indexes(db)


@app.on_event("shutdown")
async def shutdown_db_client():
    close_client()
