import logging
import sys
from pathlib import Path
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT_DIR))

from taskdesk.db import Base, BuildAdminConnectionUrl
from taskdesk.modules.auth import models as auth_models  # noqa: F401
from taskdesk.modules.admin import models as admin_models  # noqa: F401
from taskdesk.modules.categories import models as categories_models  # noqa: F401
from taskdesk.modules.events import models as events_models  # noqa: F401
from taskdesk.modules.lists import models as lists_models  # noqa: F401
from taskdesk.modules.notes import models as notes_models  # noqa: F401
from taskdesk.modules.profile import models as profile_models  # noqa: F401
from taskdesk.modules.reminders import models as reminders_models  # noqa: F401
from taskdesk.modules.tasks import models as tasks_models  # noqa: F401

config = context.config

# Inside the app, setup_logging already owns the handlers
if config.config_file_name is not None and not logging.getLogger().handlers:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    url = BuildAdminConnectionUrl()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section)
    configuration["sqlalchemy.url"] = BuildAdminConnectionUrl()
    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
