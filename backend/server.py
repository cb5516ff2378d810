"""
Studio Ops - API Backend

Sales pipeline, estimates and production handoffs for the studio.

Start with:
    uvicorn server:app --host 0.0.0.0 --port 8001 --reload
"""

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
import logging

from config import client, db, CORS_ORIGINS

# Logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("studio_ops")

app = FastAPI(
    title="Studio Ops",
    description="Sales operations backend for a creative-production studio",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ROUTES ====================

from routes import (  # noqa: E402
    clients,
    contacts,
    qualification,
    projects,
    estimates,
    handoffs,
    conversations,
    tasks,
    sales_report,
    settings,
    dashboard,
    reference,
    event_log,
)

for module in (
    clients,
    contacts,
    qualification,
    projects,
    estimates,
    handoffs,
    conversations,
    tasks,
    sales_report,
    settings,
    dashboard,
    reference,
    event_log,
):
    app.include_router(module.router, prefix="/api")


@app.get("/api/")
async def root():
    return {
        "name": "Studio Ops API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs"
    }


# ==================== LIFECYCLE ====================

@app.on_event("startup")
async def startup():
    logger.info("Studio Ops API started")

    await db.clients.create_index("id", unique=True)
    await db.clients.create_index("name")
    await db.contacts.create_index("client_id")
    await db.qualification_calls.create_index([("client_id", 1), ("call_number", 1)])
    await db.projects.create_index("id", unique=True)
    await db.projects.create_index("job_id")
    await db.deliverables.create_index("project_id")
    await db.milestones.create_index("project_id")
    await db.estimates.create_index("project_id")
    await db.estimate_deliverables.create_index("estimate_id")
    await db.handoffs.create_index([("project_id", 1), ("handoff_number", 1)])
    await db.conversations.create_index("client_id")
    await db.sales_tasks.create_index("client_id")
    await db.sales_report_imports.create_index("imported_at")
    await db.settings.create_index("key", unique=True)
    await db.event_log.create_index("created_at")

    logger.info("MongoDB indexes ready")


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
