"""
Posts API — Alembic Migration Tests
====================================

What:  `upgrade head` builds the same posts table the ORM expects, and
       `downgrade base` removes it.
How:   Runs Alembic programmatically against a SQLite file; the URL is passed
       through `config.attributes` so env.py does not read the environment.
"""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def _alembic_config(db_path: Path) -> Config:
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.attributes["database_url"] = f"sqlite+aiosqlite:///{db_path}"
    return config


def _inspect(db_path: Path):
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        tables = inspector.get_table_names()
        columns = (
            {c["name"] for c in inspector.get_columns("posts")} if "posts" in tables else set()
        )
        indexes = (
            {i["name"] for i in inspector.get_indexes("posts")} if "posts" in tables else set()
        )
    finally:
        engine.dispose()
    return tables, columns, indexes


def test_upgrade_creates_posts_table(tmp_path):
    db_path = tmp_path / "migrated.db"

    command.upgrade(_alembic_config(db_path), "head")

    tables, columns, indexes = _inspect(db_path)
    assert "posts" in tables
    assert columns == {
        "seq", "id", "title", "description", "photo", "body", "is_favourite", "created_at",
    }
    assert "idx_posts_created_at" in indexes


def test_downgrade_drops_posts_table(tmp_path):
    db_path = tmp_path / "migrated.db"
    config = _alembic_config(db_path)

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    tables, _, _ = _inspect(db_path)
    assert "posts" not in tables
