# pharma_analytics/db.py
"""
Database Connection Management

Version: 1.0.0
Features:
- Singleton pattern with thread-safe double-checked locking
- Connection pooling with auto-reconnect
- Health check utilities
- DataFrame query helper that fails fast with StoreQueryError
"""

import pandas as pd
from sqlalchemy import create_engine, text, bindparam
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from urllib.parse import quote_plus
import logging
import threading
from typing import Tuple, Optional, Dict, Any, Iterable

from .config import config
from .errors import StoreQueryError

logger = logging.getLogger(__name__)

# ==================== SINGLETON ENGINE ====================

_engine = None
_engine_lock = threading.Lock()


def get_db_engine() -> Engine:
    """
    Get SQLAlchemy database engine (singleton pattern)

    Thread-safe implementation using double-checked locking.
    Reuses the same engine across all calls to prevent
    connection pool exhaustion.

    Returns:
        SQLAlchemy Engine instance
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()

    return _engine


def build_db_url(db_config: Dict[str, Any]) -> str:
    """Build the connection URL from a database config dict."""
    if db_config.get("url"):
        return db_config["url"]

    if not all([db_config.get("host"), db_config.get("user"), db_config.get("password")]):
        logger.error("Missing required database configuration")
        raise ValueError("Missing required database configuration. Please check .env file.")

    user = db_config["user"]
    password = quote_plus(str(db_config["password"]))
    host = db_config["host"]
    port = db_config["port"]
    database = db_config["database"]
    driver = db_config.get("driver") or "mysql+pymysql"

    return f"{driver}://{user}:{password}@{host}:{port}/{database}"


def _create_engine() -> Engine:
    """Create new database engine with configured settings"""
    url = build_db_url(config.get_db_config())

    logger.info(f"🔌 Creating database engine: {url.split('@')[-1]}")

    if url.startswith("sqlite"):
        # SQLite manages its own pool; QueuePool sizing does not apply
        engine = create_engine(url, echo=False)
        logger.info("✅ Database engine created (sqlite)")
        return engine

    pool_size = config.get_app_setting("DB_POOL_SIZE", 5)
    pool_recycle = config.get_app_setting("DB_POOL_RECYCLE", 3600)

    engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,  # Auto-reconnect on stale connections
        echo=False
    )

    logger.info(f"✅ Database engine created (pool_size={pool_size}, recycle={pool_recycle}s)")

    return engine


# ==================== CONNECTION MANAGEMENT ====================

def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    try:
        engine = get_db_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except OperationalError as e:
        error_msg = "Cannot connect to database. Please check your network/VPN connection."
        logger.error(f"❌ Database connection failed: {e}")
        return False, error_msg
    except Exception as e:
        error_msg = f"Database error: {str(e)}"
        logger.error(f"❌ Database error: {e}")
        return False, error_msg


def reset_db_engine():
    """
    Reset the database engine (force new connection)

    Call this after persistent connection errors or
    when you need to reconnect with different settings.
    """
    global _engine

    with _engine_lock:
        if _engine is not None:
            try:
                _engine.dispose()
                logger.info("🔄 Database engine disposed")
            except Exception as e:
                logger.error(f"Error disposing engine: {e}")
            _engine = None

    logger.info("🔄 Database engine reset - will reconnect on next query")


# ==================== QUERY HELPERS ====================

def read_frame(
    engine: Engine,
    query: str,
    params: Dict = None,
    query_name: str = "query",
    expanding: Iterable[str] = ()
) -> pd.DataFrame:
    """
    Execute SELECT query and return results as DataFrame

    Args:
        engine: SQLAlchemy engine to run against
        query: SQL query string
        params: Query parameters
        query_name: Name for logging
        expanding: Names of list parameters rendered as IN (...) lists

    Returns:
        pandas DataFrame

    Raises:
        StoreQueryError: on any database error (no retry)
    """
    statement = text(query)
    expanding = list(expanding)
    if expanding:
        statement = statement.bindparams(
            *[bindparam(name, expanding=True) for name in expanding]
        )

    try:
        logger.debug(f"Executing {query_name}")
        df = pd.read_sql(statement, engine, params=params or {})
        logger.debug(f"{query_name} returned {len(df)} rows")
        return df
    except SQLAlchemyError as e:
        logger.error(f"Error executing {query_name}: {e}")
        raise StoreQueryError(query_name, e) from e


# ==================== EXPORTS ====================

__all__ = [
    'get_db_engine',
    'build_db_url',
    'check_db_connection',
    'reset_db_engine',
    'read_frame',
]
