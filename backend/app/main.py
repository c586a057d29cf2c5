import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure all SQLAlchemy models are imported so metadata is complete
import app.models  # noqa: F401

from app.api import (
    auth,               # /api/login, /api/logout, /api/auth/validate
    service_reports,    # /api/sunday-service-reports
    tithes,             # /api/tithes, /api/admin/tithes
    offerings,          # /api/offerings
    financial_records,  # /api/financial-records
    submissions,        # /api/submissions
    financial_reports,  # /api/financial-reports
    admin_reports,      # /api/admin/...
    ai_reports,         # /api/ai/..., /api/admin/ai/..., /api/generate/...
)
from app.api.errors import install_error_handlers

# Ops/system endpoints (/health, /version)
from app.api.system import router as system_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="District Returns")

# --- CORS for local frontend dev ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000", "http://127.0.0.1:3000",
        "http://localhost:5173", "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Routers
app.include_router(system_router)  # /health, /version

# Auth
app.include_router(auth.router)

# Submissions (create-or-replace by assembly + period)
app.include_router(service_reports.router)
app.include_router(tithes.router)
app.include_router(offerings.router)
app.include_router(financial_records.router)
app.include_router(submissions.router)

# Reports
app.include_router(financial_reports.router)
app.include_router(admin_reports.router)
app.include_router(tithes.admin_router)  # /api/admin/tithes

# Narratives
app.include_router(ai_reports.router)
