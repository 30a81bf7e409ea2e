"""
Assignment persistence
JSON file backed storage for agents and agent assignments
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from ..errors import StorageError
from ..monitoring import get_logger
from .models import Agent, AgentAssignment, _utcnow, parse_model


class AssignmentStorage(ABC):
    """Persistence contract the assignment store is written against"""

    @abstractmethod
    def get_agent_assignments(self) -> List[AgentAssignment]:
        ...

    @abstractmethod
    def get_agent_assignment(self, document_type_id: str) -> Optional[AgentAssignment]:
        ...

    @abstractmethod
    def upsert_agent_assignment(self, data: Dict[str, Any]) -> AgentAssignment:
        """Insert or replace the row keyed by ``data['documentTypeId']``"""

    @abstractmethod
    def delete_agent_assignment(self, document_type_id: str) -> bool:
        """Delete the row; returns False when there was none"""

    @abstractmethod
    def get_agent(self, agent_id: str) -> Optional[Agent]:
        ...

    @abstractmethod
    def list_agents(self) -> List[Agent]:
        ...

    @abstractmethod
    def upsert_agent(self, agent: Agent) -> Agent:
        ...

    @abstractmethod
    def delete_agent(self, agent_id: str) -> List[str]:
        """Delete an agent with its assignments; returns the affected document type ids"""


class JsonFileStorage(AssignmentStorage):
    """Keeps agents and assignments in one JSON file, rewritten on every change"""

    def __init__(self, path):
        self.path = Path(path)
        self.logger = get_logger('assignment_storage')
        self.lock = Lock()

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {'agents': {}, 'assignments': {}}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error("Failed to read assignment storage", path=str(self.path), exception=e)
            raise StorageError(f"Failed to read assignment storage: {e}") from e

        data.setdefault('agents', {})
        data.setdefault('assignments', {})
        return data

    def _write(self, data: Dict[str, Dict[str, Any]]):
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            self.logger.error("Failed to write assignment storage", path=str(self.path), exception=e)
            raise StorageError(f"Failed to write assignment storage: {e}") from e

    def get_agent_assignments(self) -> List[AgentAssignment]:
        with self.lock:
            rows = self._read()['assignments']
        return [AgentAssignment.model_validate(row) for row in rows.values()]

    def get_agent_assignment(self, document_type_id: str) -> Optional[AgentAssignment]:
        with self.lock:
            row = self._read()['assignments'].get(document_type_id)
        return AgentAssignment.model_validate(row) if row else None

    def upsert_agent_assignment(self, data: Dict[str, Any]) -> AgentAssignment:
        with self.lock:
            stored = self._read()
            existing = stored['assignments'].get(data['documentTypeId'])

            row = dict(data)
            row['updatedAt'] = _utcnow()
            row['createdAt'] = existing['createdAt'] if existing else row['updatedAt']
            assignment = parse_model(AgentAssignment, row)

            stored['assignments'][assignment.document_type_id] = assignment.to_dict()
            self._write(stored)

        return assignment

    def delete_agent_assignment(self, document_type_id: str) -> bool:
        with self.lock:
            stored = self._read()
            if document_type_id not in stored['assignments']:
                return False
            del stored['assignments'][document_type_id]
            self._write(stored)
        return True

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        with self.lock:
            row = self._read()['agents'].get(agent_id)
        return Agent.model_validate(row) if row else None

    def list_agents(self) -> List[Agent]:
        with self.lock:
            rows = self._read()['agents']
        return [Agent.model_validate(row) for row in rows.values()]

    def upsert_agent(self, agent: Agent) -> Agent:
        with self.lock:
            stored = self._read()
            stored['agents'][agent.id] = agent.to_dict()
            self._write(stored)
        return agent

    def delete_agent(self, agent_id: str) -> List[str]:
        with self.lock:
            stored = self._read()
            if agent_id not in stored['agents']:
                return []

            del stored['agents'][agent_id]
            orphaned = [type_id for type_id, row in stored['assignments'].items()
                        if row.get('agentId') == agent_id]
            for type_id in orphaned:
                del stored['assignments'][type_id]

            self._write(stored)

        if orphaned:
            self.logger.info("Assignments removed with agent", agent_id=agent_id,
                             document_type_ids=orphaned)
        return orphaned
