# authflow/app/db/base.py
"""
SQLAlchemy declarative base.

All ORM models inherit from ``Base``; ``create_tables`` is used by the
application lifespan and by the ``init_db.py`` script.
"""
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class Account(Base):
            __tablename__ = "accounts"
            id = Column(Integer, primary_key=True)
            ...
    """
    pass


async def create_tables(engine: AsyncEngine) -> None:
    # Models must be imported so their tables are registered on Base.metadata
    from authflow.app.models import account  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
