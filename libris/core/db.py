import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from libris.configs import DB_URI, DEBUG

logger = logging.getLogger(__name__)


def make_engine(uri: str = DB_URI, **kwargs):
    """Builds an engine for `uri`. In-memory SQLite shares a single
    connection so every thread sees the same database.
    """
    engine_kwargs = {'echo': DEBUG}
    if uri.startswith('sqlite'):
        engine_kwargs['connect_args'] = {'check_same_thread': False}
        if ':memory:' in uri or uri == 'sqlite://':
            engine_kwargs['poolclass'] = StaticPool
    else:
        engine_kwargs['client_encoding'] = 'utf8'
    engine_kwargs.update(kwargs)
    return create_engine(uri, **engine_kwargs)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class LibrisBase:
    @classmethod
    def get(cls, session, id):
        return session.get(cls, id)

    @classmethod
    def get_many(cls, session, offset=None, limit=None):
        return session.query(cls).offset(offset).limit(limit).all()

Base = declarative_base(cls=LibrisBase)


def get_session():
    """FastAPI dependency yielding one session per request."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def init(bind=None):
    # Registers the models on Base before creating tables
    from libris.core import models  # noqa: F401
    try:
        Base.metadata.create_all(bind=bind or engine)
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")
        raise
