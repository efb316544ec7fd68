"""Alembic environment for the Animia sync server.

Tracks the program tables (beneficiaries, screenings, interventions),
the sync receipt ledger (sync_receipts) and the notification side
channel (notification_tokens, notifications_log).

The database URL comes from animia_sync.config unless the caller has
already set ``sqlalchemy.url`` on the Alembic config.  SQLite runs in
batch mode so later column changes can be migrated on a device-side
development database.
"""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from animia_sync.config import settings
from animia_sync.database import Base

# Register every table with Base.metadata
from animia_sync.models.beneficiary import Beneficiary                          # noqa: F401
from animia_sync.models.screening import Screening                              # noqa: F401
from animia_sync.models.intervention import Intervention                        # noqa: F401
from animia_sync.models.sync_receipt import SyncReceipt                          # noqa: F401
from animia_sync.models.notification import NotificationToken, NotificationLog  # noqa: F401

config = context.config
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit the migration as SQL without a live connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply the migration against the configured database."""
    url = config.get_main_option("sqlalchemy.url")
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=_is_sqlite(url),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
