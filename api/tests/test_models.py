from pathlib import Path

from funnel.database import Base
from funnel import models  # noqa: F401

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def test_every_mapped_table_is_created_by_a_migration():
    sql = "\n".join(p.read_text(encoding="utf-8") for p in sorted(MIGRATIONS_DIR.glob("*.sql")))
    assert {"survey_sessions", "promo_codes", "survey_events"} <= set(Base.metadata.tables)
    for table in Base.metadata.tables.values():
        assert f"CREATE TABLE IF NOT EXISTS {table.name}" in sql
        for column in table.columns:
            assert column.name in sql
