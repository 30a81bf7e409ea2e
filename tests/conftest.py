"""
Test configuration and fixtures
"""
import os
import tempfile

# Loggers are created at import time; keep their files out of the working tree
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='firmsync_test_logs_'))

import json
from typing import Any, Dict, List, Tuple

import pytest

from firmsync.application import create_app
from firmsync.assignments import Agent, JsonFileStorage
from firmsync.assignments.store import AssignmentStore
from firmsync.classification import build_catalog
from firmsync.config import FirmSyncConfig
from firmsync.services import (
    AgentExecutor,
    DocumentRepository,
    NotificationService,
    WorkflowEngine,
)

CATALOG_DATA = {
    'nda': {
        'displayName': 'Non-Disclosure Agreement',
        'category': 'contracts',
        'riskLevel': 'medium',
        'defaultReviewer': 'contracts_team',
        'keywords': ['non-disclosure', 'confidential', 'nda']
    },
    'contract': {
        'displayName': 'Contract',
        'category': 'contracts',
        'riskLevel': 'medium',
        'defaultReviewer': 'senior_associate',
        'keywords': ['agreement']
    },
    'lease': {
        'displayName': 'Lease Agreement',
        'category': 'real_estate',
        'riskLevel': 'low',
        'defaultReviewer': 'real_estate_team',
        'keywords': ['lease', 'tenant', 'landlord']
    }
}


class FakeExecutor(AgentExecutor):
    """
    Records every call; ``behaviors`` maps an action value to either a result
    dict, an exception instance to raise, or an async callable.
    """

    def __init__(self, behaviors: Dict[str, Any] = None):
        self.behaviors = behaviors or {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def count(self, action: str) -> int:
        return sum(1 for call in self.calls if call[0] == action)

    async def execute(self, agent, action, content, params, context):
        self.calls.append((action.value, context.document_id, dict(params)))
        behavior = self.behaviors.get(action.value, {'ok': True})
        if isinstance(behavior, BaseException):
            raise behavior
        if callable(behavior):
            return await behavior()
        return behavior


@pytest.fixture
def catalog():
    return build_catalog(CATALOG_DATA.items())


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / 'document-types.json'
    path.write_text(json.dumps({'documentTypes': CATALOG_DATA}), encoding='utf-8')
    return path


@pytest.fixture
def documents_dir(tmp_path):
    path = tmp_path / 'documents'
    path.mkdir()
    (path / 'doc-42.txt').write_text(
        "This Non-Disclosure Agreement (NDA) protects confidential information.",
        encoding='utf-8'
    )
    return path


@pytest.fixture
def config(tmp_path, catalog_file, documents_dir):
    """Test application configuration"""
    return FirmSyncConfig(
        testing=True,
        secret_key='test-secret-key',
        catalog_path=str(catalog_file),
        data_dir=str(tmp_path / 'data'),
        documents_dir=str(documents_dir),
        log_dir=str(tmp_path / 'logs')
    )


@pytest.fixture
def storage(tmp_path):
    storage = JsonFileStorage(tmp_path / 'data' / 'agent_assignments.json')
    storage.upsert_agent(Agent(id='agent-1', name='Contract Agent'))
    storage.upsert_agent(Agent(id='agent-2', name='Lease Agent'))
    return storage


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def notifications():
    return NotificationService()


@pytest.fixture
def engine(executor, notifications):
    return WorkflowEngine(executor, notifications)


@pytest.fixture
def store(storage, engine, documents_dir, catalog):
    return AssignmentStore(storage, engine, DocumentRepository(documents_dir), catalog=catalog)


@pytest.fixture
def app(config, storage):
    app = create_app(config, storage=storage)
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def simple_workflow():
    return {
        'steps': [
            {'action': 'validate', 'timeoutMs': 1000, 'retries': 0},
            {'action': 'classify', 'timeoutMs': 1000}
        ],
        'fallback': {'action': 'notify_reviewer', 'notification': 'email'}
    }
