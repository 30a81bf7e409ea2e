"""
Tests for configuration management
"""
import os
from unittest.mock import patch

import pytest
from flask import Flask

from firmsync.config import ConfigManager, FirmSyncConfig


class TestFirmSyncConfig:
    """Test cases for FirmSyncConfig"""

    def test_defaults(self):
        config = FirmSyncConfig()

        assert config.port == 5000
        assert config.catalog_path == 'config/document-types.json'
        assert config.default_step_retries == 0
        assert str(config.assignments_path).endswith('agent_assignments.json')

    @pytest.mark.parametrize('overrides', [
        {'port': 0},
        {'llm_url': 'ftp://example.com'},
        {'retry_max_attempts': 0},
        {'retry_factor': 0.5},
        {'default_step_retries': -1},
        {'fallback_timeout_ms': 0},
    ])
    def test_validation(self, overrides):
        with pytest.raises(ValueError):
            FirmSyncConfig(**overrides)

    def test_from_environment(self):
        with patch.dict(os.environ, {
            'FLASK_PORT': '8080',
            'VERTICAL': 'firmsync',
            'DEFAULT_STEP_RETRIES': '2',
            'RETRY_FACTOR': '1.5',
            'NOTIFICATION_EMAILS': 'a@example.com, b@example.com',
            'FLASK_DEBUG': 'true'
        }):
            config = FirmSyncConfig.from_environment()

        assert config.port == 8080
        assert config.vertical == 'firmsync'
        assert config.default_step_retries == 2
        assert config.retry_factor == 1.5
        assert config.notification_emails == ['a@example.com', 'b@example.com']
        assert config.debug is True

    def test_invalid_environment_value_ignored(self):
        with patch.dict(os.environ, {'FLASK_PORT': 'not-a-port'}):
            config = FirmSyncConfig.from_environment()

        assert config.port == 5000

    def test_overrides_beat_environment(self):
        with patch.dict(os.environ, {'DATA_DIR': '/env/data'}):
            config = FirmSyncConfig.from_environment(data_dir='/override/data')

        assert config.data_dir == '/override/data'

    def test_to_dict_hides_secret(self):
        assert 'secret_key' not in FirmSyncConfig(secret_key='s3cret').to_dict()


class TestConfigManager:
    """Test cases for ConfigManager"""

    def test_initialize_app(self, config):
        app = Flask(__name__)
        ConfigManager(config).initialize_app(app)

        assert app.config['TESTING'] is True
        assert app.config['SECRET_KEY'] == 'test-secret-key'
        assert app.config['MAX_CONTENT_LENGTH'] == 10 * 1024 * 1024
        assert os.path.isdir(config.data_dir)
