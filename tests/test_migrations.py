"""Tests for the Alembic migrations, run against a throwaway SQLite file."""

from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from alembic import command
from alembic.config import Config

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


@pytest.fixture
def migrated_engine(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrations.db'}"
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.set_main_option("sqlalchemy.url", url)

    command.upgrade(config, "head")

    engine = sa.create_engine(url)
    yield engine
    engine.dispose()


def insert_user(connection, user_id, email, deleted_at=None):
    connection.execute(
        sa.text(
            "INSERT INTO users (id, email, password_hash, first_name, last_name, phone, "
            "deleted_at) VALUES (:id, :email, 'x', '', '', '', :deleted_at)"
        ),
        {"id": user_id, "email": email, "deleted_at": deleted_at},
    )


def test_email_index_is_partial(migrated_engine):
    with migrated_engine.connect() as connection:
        sql = connection.execute(
            sa.text("SELECT sql FROM sqlite_master WHERE name = 'uq_users_email_active'")
        ).scalar_one()

    assert "deleted_at IS NULL" in sql


def test_live_duplicate_email_is_rejected(migrated_engine):
    with migrated_engine.begin() as connection:
        insert_user(connection, "1", "jane@example.com")

    with pytest.raises(IntegrityError), migrated_engine.begin() as connection:
        insert_user(connection, "2", "jane@example.com")


def test_deleted_row_frees_the_email(migrated_engine):
    with migrated_engine.begin() as connection:
        insert_user(connection, "1", "jane@example.com", deleted_at="2026-01-01 00:00:00")
        insert_user(connection, "2", "jane@example.com")

        count = connection.execute(sa.text("SELECT COUNT(*) FROM users")).scalar_one()

    assert count == 2


def test_timestamps_have_database_defaults(migrated_engine):
    with migrated_engine.begin() as connection:
        insert_user(connection, "1", "jane@example.com")
        created_at, updated_at, status = connection.execute(
            sa.text("SELECT created_at, updated_at, status FROM users WHERE id = '1'")
        ).one()

    assert created_at is not None
    assert updated_at is not None
    assert status == "active"


def test_downgrade_drops_the_table(migrated_engine):
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.set_main_option("sqlalchemy.url", str(migrated_engine.url))

    command.downgrade(config, "base")

    assert "users" not in sa.inspect(migrated_engine).get_table_names()
