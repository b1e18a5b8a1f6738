"""
Database configuration
"""
from sqlmodel import SQLModel, create_engine, Session
from core.config import get_settings

# Create engine lazily to allow test configuration to be applied
_engine = None


def _connect_args(uri: str) -> dict:
    # Requests are served from a threadpool, so sqlite connections must
    # be usable outside the thread that opened them.
    if uri.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def get_engine():
    """
    Get or create the database engine.
    This lazy initialization allows test settings to be applied properly.
    """
    global _engine
    if _engine is None:
        uri = str(get_settings().SQLALCHEMY_DATABASE_URI)
        _engine = create_engine(uri, echo=False, connect_args=_connect_args(uri))
    return _engine


def reset_engine():
    """
    Reset the engine to None.
    This is useful for tests that need to switch between different settings.
    """
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def create_db_and_tables():
    """Create all tables registered on SQLModel.metadata"""
    # Import table models so they register with the metadata
    import api.filerecord.models  # noqa: F401
    SQLModel.metadata.create_all(get_engine())


# Yield session
def get_session():
    with Session(get_engine()) as session:
        yield session
