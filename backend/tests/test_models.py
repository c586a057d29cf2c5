# tests/test_models.py
# Every report table maps and shares the document columns.
from sqlalchemy import inspect

from app.db import Base
from app.models import (
    FinancialRecord,
    MidweekServiceReport,
    OfferingRecord,
    SpecialServiceReport,
    Submission,
    SundayServiceReport,
    TitheRecord,
)

DOCUMENT_COLUMNS = {"id", "assembly", "submitted_by", "month", "records", "created_at", "updated_at"}


def test_registry_declares_every_table():
    assert set(Base.metadata.tables) >= {
        "sunday_service_reports",
        "midweek_service_reports",
        "special_service_reports",
        "tithe_records",
        "offering_records",
        "financial_records",
        "submissions",
    }


def test_document_models_share_columns():
    models = [SundayServiceReport, MidweekServiceReport, SpecialServiceReport, TitheRecord]
    for model in models:
        assert set(model.__table__.columns.keys()) == DOCUMENT_COLUMNS, model.__name__

    assert set(OfferingRecord.__table__.columns.keys()) == DOCUMENT_COLUMNS | {"type"}
    assert set(FinancialRecord.__table__.columns.keys()) == DOCUMENT_COLUMNS | {"totals"}
    # each table gets its own copy of the mixin columns
    assert SundayServiceReport.__table__.c.month is not TitheRecord.__table__.c.month


def test_tables_round_trip_rows(db):
    db.add_all(
        [
            SundayServiceReport(assembly="ZION", month="November-2025", submitted_by="Sec", records=[{"tithes": 1}]),
            OfferingRecord(assembly="ZION", month="November-2025", submitted_by="Sec", type="Harvest", records=[]),
            FinancialRecord(
                assembly="ZION",
                month="November-2025",
                submitted_by="Sec",
                records=[],
                totals={"income": 1.0, "expense": 0.0, "net": 1.0},
            ),
            Submission(assembly="ZION", month=11, year=2025, entries=[]),
        ]
    )
    db.commit()

    fin = db.query(FinancialRecord).one()
    assert fin.totals["net"] == 1.0
    assert fin.created_at is not None
    assert db.query(OfferingRecord).one().type == "Harvest"
    assert db.query(SundayServiceReport).one().records == [{"tithes": 1}]
    assert inspect(fin).persistent
