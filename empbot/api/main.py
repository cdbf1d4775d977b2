"""
FastAPI application for the employee binding webhook.
"""

from fastapi import FastAPI, Depends
from fastapi.responses import JSONResponse

from .schemas import HealthResponse
from .webhook import router as webhook_router, close_messenger, get_store
from ..core.config import VERSION, debug_enabled, validate_config
from ..core.schema import EMPLOYEES, MESSAGES, USER_MAP
from ..core.store import DocumentStore
from ..util.logging import logger

for issue in validate_config():
    logger.warning(f"[BOOT] Config issue: {issue}")

# Initialize the FastAPI application
app = FastAPI(
    title="Employee Binding Webhook",
    version=VERSION,
    description="LINE webhook that links chat users to employee records",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

app.include_router(webhook_router, prefix="/api", tags=["webhook"])

@app.on_event("shutdown")
async def shutdown_event():
    await close_messenger()

@app.get("/health", response_model=HealthResponse)
async def health_check_endpoint(store: DocumentStore = Depends(get_store)):
    """Check system health."""
    db_health = await store.health_check()
    counts = {}
    if db_health:
        for collection in (USER_MAP, EMPLOYEES, MESSAGES):
            counts[collection] = await store.count(collection)

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health,
        store_project_id=store.project_id,
        document_counts=counts,
        config_issues=validate_config()
    )

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    content = {"detail": "Internal server error"}
    if debug_enabled():
        content["debug"] = str(exc)
    return JSONResponse(
        status_code=500,
        content=content,
    )
