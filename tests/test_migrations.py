from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

import treasurer.config as app_config

ROOT = Path(__file__).resolve().parents[1]


def _alembic_config() -> Config:
    cfg = Config(str(ROOT / "treasurer" / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "treasurer" / "migrations"))
    return cfg


def test_upgrade_creates_every_table_and_downgrade_removes_them(tmp_path, monkeypatch):
    database_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setattr(app_config.settings, "database_url", database_url)
    cfg = _alembic_config()

    command.upgrade(cfg, "head")

    engine = create_engine(database_url)
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"members", "goals", "events", "payments", "expenses", "settings"} <= tables
        unique_constraints = inspect(engine).get_unique_constraints("payments")
        assert any(set(item["column_names"]) == {"member_id", "month", "year"} for item in unique_constraints)
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")

    engine = create_engine(database_url)
    try:
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
