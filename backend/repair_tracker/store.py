from __future__ import annotations
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session, Session


class Store:
    """Explicit handle on the relational store.

    One per application; services receive it at construction. Sessions are
    thread-scoped and removed on app-context teardown.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        if database_url.endswith(':memory:'):
            # Ensure a single shared in-memory SQLite database across all sessions
            self.engine = create_engine(
                database_url,
                echo=echo,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(database_url, echo=echo, future=True)
        self._sessions = scoped_session(sessionmaker(bind=self.engine, expire_on_commit=False, autoflush=False))

    def session(self) -> Session:
        return self._sessions()

    def remove(self):
        self._sessions.remove()

    def create_all(self):
        from repair_tracker.models.base import Base
        import repair_tracker.models.account  # noqa: F401
        import repair_tracker.models.repair  # noqa: F401
        Base.metadata.create_all(self.engine)

    def dispose(self):
        self.remove()
        self.engine.dispose()
