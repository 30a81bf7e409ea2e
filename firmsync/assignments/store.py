"""
Assignment Store
Document type -> agent -> workflow bindings and workflow test runs
"""

from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Union

from ..classification import Catalog
from ..errors import AgentNotFoundError, NotAssignedError, UnknownDocumentTypeError
from ..monitoring import get_logger
from ..services.agent_executor import ExecutionContext
from ..services.documents import DocumentRepository
from ..services.workflow_engine import TestResult, WorkflowEngine
from .models import AgentAssignment, Workflow, parse_model
from .storage import AssignmentStorage

AssignmentListener = Callable[[str, str], None]


class AssignmentStore:
    """
    Sole write path for agent assignments

    Listeners registered with :meth:`subscribe` are called with
    ``(document_type_id, event)`` after every change, where event is
    ``"assigned"`` or ``"unassigned"``.
    """

    def __init__(self, storage: AssignmentStorage, engine: WorkflowEngine,
                 documents: DocumentRepository, catalog: Optional[Catalog] = None):
        self.logger = get_logger('assignment_store')
        self.storage = storage
        self.engine = engine
        self.documents = documents
        self.catalog = catalog
        self._listeners: List[AssignmentListener] = []
        self._cache: Optional[List[AgentAssignment]] = None
        self._generation = 0
        self._cache_lock = Lock()

    def subscribe(self, listener: AssignmentListener):
        self._listeners.append(listener)

    def _changed(self, document_type_id: str, event: str):
        with self._cache_lock:
            self._cache = None
            self._generation += 1

        for listener in self._listeners:
            try:
                listener(document_type_id, event)
            except Exception as e:
                self.logger.error("Assignment listener failed",
                                  document_type_id=document_type_id, event=event, exception=e)

    def assign(self, document_type_id: str, agent_id: Optional[str],
               workflow: Union[Workflow, Dict[str, Any], None] = None) -> Optional[AgentAssignment]:
        """
        Bind an agent and workflow to a document type, replacing any existing binding

        An empty or missing ``agent_id`` removes the binding instead.

        Returns:
            The stored assignment, or None when the call unassigned
        """
        if not agent_id:
            self.unassign(document_type_id)
            return None

        if self.catalog is not None and document_type_id not in self.catalog:
            raise UnknownDocumentTypeError(document_type_id)

        workflow = parse_model(Workflow, workflow)
        if self.storage.get_agent(agent_id) is None:
            raise AgentNotFoundError(agent_id)

        assignment = self.storage.upsert_agent_assignment({
            'documentTypeId': document_type_id,
            'agentId': agent_id,
            'workflow': workflow,
        })

        self.logger.info("Agent assigned",
                         document_type_id=document_type_id,
                         agent_id=agent_id,
                         steps=len(workflow.steps))
        self._changed(document_type_id, 'assigned')
        return assignment

    def unassign(self, document_type_id: str) -> bool:
        """Remove the binding; returns False when there was nothing to remove"""
        removed = self.storage.delete_agent_assignment(document_type_id)
        if removed:
            self.logger.info("Agent unassigned", document_type_id=document_type_id)
            self._changed(document_type_id, 'unassigned')
        return removed

    def get_assignment(self, document_type_id: str) -> Optional[AgentAssignment]:
        return self.storage.get_agent_assignment(document_type_id)

    def list_assignments(self) -> List[AgentAssignment]:
        with self._cache_lock:
            if self._cache is not None:
                return list(self._cache)
            generation = self._generation

        assignments = self.storage.get_agent_assignments()
        with self._cache_lock:
            # A write during the read makes this result stale
            if self._generation == generation:
                self._cache = assignments
        return list(assignments)

    def remove_agent(self, agent_id: str) -> List[str]:
        """Delete an agent; its assignments go with it"""
        removed = self.storage.delete_agent(agent_id)
        self.logger.info("Agent removed", agent_id=agent_id, assignments_removed=len(removed))
        for document_type_id in removed:
            self._changed(document_type_id, 'unassigned')
        return removed

    def reconcile(self, catalog: Catalog) -> List[str]:
        """Drop assignments whose document type is no longer in ``catalog``"""
        stale = [a.document_type_id for a in self.storage.get_agent_assignments()
                 if a.document_type_id not in catalog]
        for document_type_id in stale:
            self.logger.warning("Removing assignment for unknown document type",
                                document_type_id=document_type_id)
            self.unassign(document_type_id)
        return stale

    async def test_assignment(self, document_type_id: str, sample_document_id: str) -> TestResult:
        """
        Run the bound workflow against a sample document

        Raises:
            NotAssignedError: No agent is bound to the document type
            AgentNotFoundError: The bound agent no longer exists
            DocumentNotFoundError: The sample document does not exist
        """
        assignment = self.storage.get_agent_assignment(document_type_id)
        if assignment is None:
            raise NotAssignedError(document_type_id)

        agent = self.storage.get_agent(assignment.agent_id)
        if agent is None:
            raise AgentNotFoundError(assignment.agent_id)

        content = self.documents.get_content(sample_document_id)

        reviewer = 'reviewer'
        if self.catalog is not None and document_type_id in self.catalog:
            reviewer = self.catalog[document_type_id].default_reviewer

        context = ExecutionContext(
            document_type_id=document_type_id,
            document_id=sample_document_id,
            reviewer=reviewer
        )

        self.logger.info("Testing agent assignment",
                         document_type_id=document_type_id,
                         agent_id=agent.id,
                         sample_document_id=sample_document_id)
        return await self.engine.run(agent, assignment.workflow, content, context)
