# pharma_analytics/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Database credentials validated lazily (first engine creation)
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


@dataclass
class DatabaseConfig:
    """Database configuration container"""
    host: str
    port: int
    user: str
    password: str
    database: str
    driver: str = "mysql+pymysql"
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'driver': self.driver,
            'url': self.url,
        }

    def is_configured(self) -> bool:
        if self.url:
            return True
        return bool(self.host and self.user and self.password)


class Config:
    """
    Centralized configuration management

    Usage:
        from pharma_analytics.config import config

        db_config = config.get_db_config()
        top_n = config.get_app_setting("HIERARCHY_TOP_N", 10)
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        db_secrets = st.secrets.get("DB_CONFIG", {})
        self._db_config = DatabaseConfig(
            host=db_secrets.get("host", ""),
            port=int(db_secrets.get("port", 3306)),
            user=db_secrets.get("user", ""),
            password=db_secrets.get("password", ""),
            database=db_secrets.get("database", "pharma"),
            driver=db_secrets.get("driver", "mysql+pymysql"),
            url=db_secrets.get("url"),
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._db_config = DatabaseConfig(
            host=os.getenv("DB_HOST", ""),
            port=int(os.getenv("DB_PORT", "3306")),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_NAME", os.getenv("DB_DATABASE", "pharma")),
            driver=os.getenv("DB_DRIVER", "mysql+pymysql"),
            url=os.getenv("DB_URL") or None,
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Database pool
            "DB_POOL_SIZE": int(os.getenv("DB_POOL_SIZE", "5")),
            "DB_POOL_RECYCLE": int(os.getenv("DB_POOL_RECYCLE", "3600")),

            # Rollup coverage (first month present in mv_sales_kpi_monthly)
            "ROLLUP_START_DATE": os.getenv("ROLLUP_START_DATE", "2024-01-01"),

            # KPI engine
            "PARETO_THRESHOLD": float(os.getenv("PARETO_THRESHOLD", "0.8")),
            "COMPARISON_MAX_WORKERS": int(os.getenv("COMPARISON_MAX_WORKERS", "2")),

            # Drill-down / tables
            "HIERARCHY_TOP_N": int(os.getenv("HIERARCHY_TOP_N", "10")),
            "DEFAULT_PAGE_SIZE": int(os.getenv("DEFAULT_PAGE_SIZE", "25")),
        }

    def _log_config_status(self):
        """Log configuration status"""
        if self._db_config.url:
            logger.info("✅ Database: URL override")
        elif self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        else:
            logger.warning("⚠️ Database: Not configured")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration as dictionary"""
        return self._db_config.to_dict()

    def is_db_configured(self) -> bool:
        return self._db_config.is_configured()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def set_app_setting(self, key: str, value: Any) -> None:
        """Override an application setting at runtime (tests, CLI flags)."""
        self._app_config[key] = value

    def set_db_config(self, db_config: DatabaseConfig) -> None:
        """Replace the database configuration. Takes effect on next engine creation."""
        self._db_config = db_config

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
]
