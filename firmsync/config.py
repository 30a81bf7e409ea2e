"""
Configuration Management
Environment-driven settings with validation
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


def _as_bool(value: str) -> bool:
    return value.lower() in ('1', 'true', 'yes')


def _as_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


@dataclass
class FirmSyncConfig:
    """Application configuration with validation"""

    # Flask settings
    debug: bool = False
    testing: bool = False
    secret_key: str = field(default_factory=lambda: os.urandom(32).hex())

    # Server settings
    host: str = '127.0.0.1'
    port: int = 5000

    # Document type catalog
    catalog_path: str = 'config/document-types.json'
    vertical: Optional[str] = None
    verticals_dir: str = 'verticals'

    # Storage
    data_dir: str = 'data'
    documents_dir: str = 'data/documents'
    log_dir: str = 'logs'
    log_level: str = 'INFO'

    # Agent LLM endpoint (OpenAI compatible chat completions)
    llm_url: str = 'http://localhost:1234/v1/chat/completions'
    llm_model: str = 'local-model'
    ai_timeout: int = 30

    # Retry policy for network calls
    retry_max_attempts: int = 3
    retry_initial_delay_ms: int = 1000
    retry_max_delay_ms: int = 10000
    retry_factor: float = 2.0

    # Workflow execution
    default_step_retries: int = 0
    default_step_timeout_ms: int = 30000
    fallback_timeout_ms: int = 30000
    max_pages_extract: int = 3

    # Notifications
    notification_emails: List[str] = field(default_factory=list)
    smtp_host: Optional[str] = None
    smtp_port: int = 25
    smtp_sender: str = 'firmsync@localhost'

    # Request limits
    rate_limit_per_minute: int = 120
    rate_limit_burst: int = 30
    max_request_size_mb: int = 10

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ValueError listing every invalid setting"""
        errors = []

        if self.port < 1 or self.port > 65535:
            errors.append("Port must be between 1 and 65535")

        if not self.catalog_path:
            errors.append("catalog_path cannot be empty")

        if not self.data_dir:
            errors.append("data_dir cannot be empty")

        if not self.llm_url.startswith(('http://', 'https://')):
            errors.append("LLM URL must start with http:// or https://")

        if self.retry_max_attempts < 1:
            errors.append("retry_max_attempts must be at least 1")

        if self.retry_initial_delay_ms < 0 or self.retry_max_delay_ms < 0:
            errors.append("Retry delays cannot be negative")

        if self.retry_factor < 1:
            errors.append("retry_factor must be at least 1")

        if self.default_step_retries < 0:
            errors.append("default_step_retries cannot be negative")

        if self.default_step_timeout_ms < 1 or self.fallback_timeout_ms < 1:
            errors.append("Timeouts must be positive")

        if self.rate_limit_burst < 1 or self.rate_limit_per_minute < 1:
            errors.append("Rate limits must be positive")

        if self.max_request_size_mb < 1:
            errors.append("Max request size must be at least 1 MB")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    @property
    def assignments_path(self) -> Path:
        return Path(self.data_dir) / 'agent_assignments.json'

    def create_directories(self):
        for dir_path in (self.data_dir, self.documents_dir, self.log_dir):
            Path(dir_path).mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_environment(cls, **overrides) -> 'FirmSyncConfig':
        """Create configuration from environment variables"""
        config = cls(**overrides)

        env_mappings = {
            'FLASK_DEBUG': ('debug', _as_bool),
            'FLASK_HOST': ('host', str),
            'FLASK_PORT': ('port', int),
            'FLASK_SECRET_KEY': ('secret_key', str),

            'CATALOG_PATH': ('catalog_path', str),
            'VERTICAL': ('vertical', str),
            'VERTICALS_DIR': ('verticals_dir', str),

            'DATA_DIR': ('data_dir', str),
            'DOCUMENTS_DIR': ('documents_dir', str),
            'LOG_DIR': ('log_dir', str),
            'LOG_LEVEL': ('log_level', str),

            'LLM_URL': ('llm_url', str),
            'LLM_MODEL': ('llm_model', str),
            'AI_TIMEOUT': ('ai_timeout', int),

            'RETRY_MAX_ATTEMPTS': ('retry_max_attempts', int),
            'RETRY_INITIAL_DELAY_MS': ('retry_initial_delay_ms', int),
            'RETRY_MAX_DELAY_MS': ('retry_max_delay_ms', int),
            'RETRY_FACTOR': ('retry_factor', float),

            'DEFAULT_STEP_RETRIES': ('default_step_retries', int),
            'DEFAULT_STEP_TIMEOUT_MS': ('default_step_timeout_ms', int),
            'FALLBACK_TIMEOUT_MS': ('fallback_timeout_ms', int),
            'MAX_PAGES_EXTRACT': ('max_pages_extract', int),

            'NOTIFICATION_EMAILS': ('notification_emails', _as_list),
            'SMTP_HOST': ('smtp_host', str),
            'SMTP_PORT': ('smtp_port', int),
            'SMTP_SENDER': ('smtp_sender', str),

            'RATE_LIMIT_PER_MINUTE': ('rate_limit_per_minute', int),
            'RATE_LIMIT_BURST': ('rate_limit_burst', int),
            'MAX_REQUEST_SIZE_MB': ('max_request_size_mb', int),
        }

        for env_var, (attr_name, converter) in env_mappings.items():
            if attr_name in overrides:
                continue
            value = os.getenv(env_var)
            if value is not None:
                try:
                    setattr(config, attr_name, converter(value))
                except ValueError as e:
                    print(f"Warning: Invalid value for {env_var}: {value} ({e})")

        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.__dict__)
        result.pop('secret_key', None)
        return result

    def get_flask_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': self.debug,
            'TESTING': self.testing,
            'SECRET_KEY': self.secret_key,
            'MAX_CONTENT_LENGTH': self.max_request_size_mb * 1024 * 1024
        }


class ConfigManager:
    """Holds the active configuration and applies it to the Flask app"""

    def __init__(self, config: Optional[FirmSyncConfig] = None):
        self._config = config
        self._is_production = os.getenv('FLASK_ENV') == 'production'

    @property
    def config(self) -> FirmSyncConfig:
        if self._config is None:
            self._config = FirmSyncConfig.from_environment()
        return self._config

    @property
    def is_production(self) -> bool:
        return self._is_production

    def initialize_app(self, app):
        app.config.update(self.config.get_flask_config())

        try:
            self.config.create_directories()
        except OSError as e:
            print(f"Warning: Failed to create directories: {e}")

        return app

    def print_config_summary(self):
        config = self.config
        print("\nConfiguration Summary:")
        print(f"   Mode: {'Production' if self.is_production else 'Development'}")
        print(f"   Host: {config.host}:{config.port}")
        print(f"   Debug: {config.debug}")
        print(f"   Catalog: {config.catalog_path} (vertical: {config.vertical or 'none'})")
        print(f"   Data: {config.data_dir}")
        print(f"   Logs: {config.log_dir}")
        print(f"   LLM: {config.llm_url}")
        print()
