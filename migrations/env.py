from logging.config import fileConfig
from alembic import context
import os
import sys

# корень репозитория в sys.path, чтобы `from app import create_app` работал и из голого alembic
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(THIS_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from flask import current_app, has_app_context  # noqa: E402
from extensions import db                      # noqa: E402

# `flask db ...` уже работает в контексте приложения, голый alembic нет
if not has_app_context():
    from app import create_app  # noqa: E402
    create_app().app_context().push()

engine_url = current_app.config["SQLALCHEMY_DATABASE_URI"]
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", engine_url.replace("%", "%%"))

target_metadata = db.metadata


def run_migrations_offline():
    """Emit SQL without a connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    with db.engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
