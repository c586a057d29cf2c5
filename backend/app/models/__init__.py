# backend/app/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py or alembic/env.py) so SQLAlchemy
sees all mapped classes before metadata is used.
"""
from app.db import Base  # re-export Base

from .service_reports import (  # noqa: F401
    SERVICE_MODELS,
    MidweekServiceReport,
    ServiceType,
    SpecialServiceReport,
    SundayServiceReport,
)
from .tithe_record import TitheRecord  # noqa: F401
from .offering_record import OfferingRecord  # noqa: F401
from .financial_record import FinancialRecord  # noqa: F401
from .submission import Submission  # noqa: F401
