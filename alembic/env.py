"""Alembic environment configuration."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from logging.config import fileConfig

# --- Monter le PYTHONPATH sur la racine du projet
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from alembic import context
from sqlalchemy import engine_from_config, pool

import app.models  # noqa: F401  enregistre les tables
from app.config import get_settings
from app.models.base import Base

# ---- Charger la config Alembic
config = context.config
if config.config_file_name is not None:
    # Ne pas couper les loggers de l'application (tests, /health)
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Cible de métadonnées pour l'autogénération
target_metadata = Base.metadata


def get_url() -> str:
    # 1) priorité à la variable d'env
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url
    # 2) fallback aux settings
    return get_settings().database_url


def _configure_common_kwargs() -> dict:
    """Options communes à offline/online (sans literal_binds)."""
    return dict(
        target_metadata=target_metadata,
        render_as_batch=True,        # crucial pour SQLite (ALTER TABLE)
        compare_type=True,
        compare_server_default=True,
    )


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        **_configure_common_kwargs(),
        literal_binds=True,          # <= UNIQUEMENT offline
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {}) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_common_kwargs())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
