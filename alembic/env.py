from logging.config import fileConfig

from alembic import context

from activityhub.config import DATABASE_URL
from activityhub.database import build_engine
from activityhub.models.base import Base
from activityhub.models.activity import Activity  # noqa: F401 (register table metadata)
from activityhub.models.category import Category  # noqa: F401
from activityhub.models.comment import Comment  # noqa: F401
from activityhub.models.participation import Participation  # noqa: F401
from activityhub.models.user import Account, User  # noqa: F401

config = context.config

# The app configures logging itself and sets configure_logger=False when it
# runs the upgrade in-process; the alembic CLI keeps the ini logging setup.
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = build_engine(DATABASE_URL)
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
