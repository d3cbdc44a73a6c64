"""
API configuration settings.
"""

from typing import Dict, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Books API"
    api_version: str = "1.0.0"
    api_description: str = "A CRUD REST API for managing books"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Storage Settings
    storage_backend: str = "memory"  # memory or mongodb
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "books_api"
    mongodb_collection: str = "books"

    # Security Settings
    basic_auth_users: str = "admin:password"  # Comma-separated list of user:password pairs
    auth_realm: Optional[str] = None

    # Response Settings
    powered_by: str = "FastAPI Framework"
    gzip_minimum_size: int = 500
    report_missing_on_delete: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @field_validator('storage_backend')
    @classmethod
    def validate_storage_backend(cls, v):
        """Ensure storage backend is supported."""
        valid_backends = ['memory', 'mongodb']
        if v.lower() not in valid_backends:
            raise ValueError(f'storage_backend must be one of: {valid_backends}')
        return v.lower()

    @field_validator('gzip_minimum_size')
    @classmethod
    def validate_gzip_minimum_size(cls, v):
        """Ensure gzip threshold is not negative."""
        if v < 0:
            raise ValueError('gzip_minimum_size must be zero or greater')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    def get_credentials(self) -> Dict[str, str]:
        """
        Parse the configured basic auth users.

        Returns:
            Mapping of username to password
        """
        credentials = {}
        for entry in self.basic_auth_users.split(","):
            entry = entry.strip()
            if not entry or ":" not in entry:
                continue
            username, password = entry.split(":", 1)
            credentials[username] = password
        return credentials


# Global config instance
config = APIConfig()
