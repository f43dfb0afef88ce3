"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db().
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from water_delivery.config import get_settings

settings = get_settings()

# pool_pre_ping=True tests connections before handing them out,
# so a restarted database doesn't fail the next order completion.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
)

# autocommit=False: the caller decides when a unit of work is
# committed. Order completion and handover submission must be
# all-or-nothing.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed even
    when the endpoint raises, so connections never leak
    from the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
