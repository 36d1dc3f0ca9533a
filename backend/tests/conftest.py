import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length")
os.environ.setdefault("JWT_ACCESS_TTL_MINUTES", "15")
os.environ.setdefault("JWT_REFRESH_TTL_DAYS", "7")
os.environ.setdefault("AUTH_PASSWORD_MIN_LENGTH", "8")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["LOG_FILE_PATH"] = ""
os.environ["FRONTEND_LOG_FILE_PATH"] = ""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskdesk.db import Base
from taskdesk.modules.admin import models as admin_models  # noqa: F401
from taskdesk.modules.auth.models import User
from taskdesk.modules.auth.roles import ParseRole
from taskdesk.modules.auth.utils.rbac import Actor
from taskdesk.modules.categories import models as categories_models  # noqa: F401
from taskdesk.modules.events import models as events_models  # noqa: F401
from taskdesk.modules.lists import models as lists_models  # noqa: F401
from taskdesk.modules.notes import models as notes_models  # noqa: F401
from taskdesk.modules.profile import models as profile_models  # noqa: F401
from taskdesk.modules.reminders import models as reminders_models  # noqa: F401
from taskdesk.modules.tasks import models as tasks_models  # noqa: F401


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db):
    def _make_user(user_id, role="user", manager_id=None, is_active=True, name=None):
        record = User(
            Id=user_id,
            Name=name or user_id.upper(),
            Email=f"{user_id}@example.com",
            PasswordHash="not-a-real-hash",
            Role=role,
            ManagerId=manager_id,
            IsActive=is_active,
        )
        db.add(record)
        db.commit()
        return record

    return _make_user


@pytest.fixture()
def actor_for():
    def _actor_for(user):
        return Actor(
            Id=user.Id,
            Role=ParseRole(user.Role),
            IsActive=bool(user.IsActive),
            ManagerId=user.ManagerId,
        )

    return _actor_for


@pytest.fixture()
def team(make_user, actor_for):
    """Manager m1 with u1 on the team, a second manager, an unmanaged user and an admin."""
    manager = make_user("m1", role="manager")
    make_user("m2", role="manager")
    managed = make_user("u1", manager_id="m1")
    stranger = make_user("u2")
    admin = make_user("a1", role="admin")
    return {
        "manager": actor_for(manager),
        "managed": actor_for(managed),
        "stranger": actor_for(stranger),
        "admin": actor_for(admin),
    }
