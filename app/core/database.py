"""Database configuration with dual database support.

The config database holds application data owned by this service (the
request log). The data source database holds the operational construction
tables that the BI engine reads from.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import DATABASE_URL, DATA_SOURCE_URL

# ===== CONFIG DATABASE =====
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# ===== DATA SOURCE DATABASE =====
# Despesas, obras, funcionarios, etc.
data_engine = create_engine(
    DATA_SOURCE_URL,
    connect_args={"check_same_thread": False} if DATA_SOURCE_URL.startswith("sqlite") else {},
)
DataBase = declarative_base()


# ===== DATA SOURCE DEPENDENCY =====


def get_data_engine():
    """Get the data source engine.

    The BI engine opens one connection per table fetch so that concurrent
    fetches never share a connection.
    """
    return data_engine


# ===== TABLE CREATION =====


def create_all_tables():
    """Create tables in both databases."""
    # Import models to ensure they're registered with Base classes
    from app.logging.models import RequestLog  # noqa: F401
    from app.datasource import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    DataBase.metadata.create_all(bind=data_engine)


def init_db():
    """Initialize both databases."""
    create_all_tables()
