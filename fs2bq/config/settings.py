# Configuration management

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings  # type: ignore


class ConfigurationError(Exception):
    """Raised for missing or invalid source/warehouse configuration."""
    pass


class Settings(BaseSettings):
    # Document source
    source_backend: str = "firestore"  # firestore, json or memory
    firebase_credentials_path: Optional[str] = None
    firebase_project: Optional[str] = None
    json_source_path: str = "./collections"

    # Warehouse
    warehouse_backend: str = "bigquery"  # bigquery, sql or memory
    bigquery_credentials_path: Optional[str] = None
    bigquery_project: Optional[str] = None
    bigquery_location: Optional[str] = None
    warehouse_url: str = "sqlite:///./warehouse.db"
    insert_batch_size: int = 500

    # Application
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = True

    # Observability
    metrics_enabled: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def load_service_account(path: Optional[str], purpose: str) -> Dict[str, Any]:
    """
    Load a service account key file.

    Args:
        path: Path to the JSON key file
        purpose: Which connection the key is for, used in error messages

    Returns:
        Parsed service account info

    Raises:
        ConfigurationError: If the path is unset, unreadable or not a key file
    """
    if not path:
        raise ConfigurationError(f"No service account configured for {purpose}")

    key_path = Path(path)
    if not key_path.is_file():
        raise ConfigurationError(
            f"Service account file for {purpose} not found: {path}")

    try:
        info = json.loads(key_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Service account file for {purpose} is unreadable: {e}")

    if not isinstance(info, dict) or "client_email" not in info:
        raise ConfigurationError(
            f"Service account file for {purpose} is not a service account key: {path}")

    return info
