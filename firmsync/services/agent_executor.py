"""
Agent Execution
Performs a single workflow action on behalf of an agent
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..assignments.models import NOTIFY_ACTIONS, Agent, WorkflowAction
from ..classification import Catalog, detect_document_type
from ..errors import AgentExecutionError
from ..monitoring import get_logger
from ..utils.blocking import run_blocking
from .llm_client import LLMClient
from .notifications import Notice, NotificationService


@dataclass
class ExecutionContext:
    """What an action knows about the run it belongs to"""
    document_type_id: str
    document_id: str
    reviewer: str = 'reviewer'


class AgentExecutor(ABC):
    """Runs one action for an agent and returns a structured result or raises"""

    @abstractmethod
    async def execute(self, agent: Agent, action: WorkflowAction, content: str,
                      params: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        ...


# Capability flag that must not be False for the action to run
ACTION_CAPABILITIES = {
    WorkflowAction.EXTRACT_TEXT: 'canExtractText',
    WorkflowAction.CLASSIFY: 'canClassify',
    WorkflowAction.ANALYZE: 'canAnalyze',
    WorkflowAction.SUMMARIZE: 'canSummarize',
    WorkflowAction.REVIEW: 'canReview',
}

LLM_ACTIONS = (WorkflowAction.ANALYZE, WorkflowAction.SUMMARIZE, WorkflowAction.REVIEW)


class LocalAgentExecutor(AgentExecutor):
    """Runs text actions locally, model actions through the LLM, notices through notifications"""

    def __init__(self, catalog: Catalog, notifications: NotificationService,
                 llm_client: Optional[LLMClient] = None):
        self.catalog = catalog
        self.notifications = notifications
        self.llm_client = llm_client
        self.logger = get_logger('agent_executor')

    async def execute(self, agent: Agent, action: WorkflowAction, content: str,
                      params: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        capability = ACTION_CAPABILITIES.get(action)
        if capability and not agent.allows(capability):
            raise AgentExecutionError(f"Agent {agent.id} lacks capability {capability}",
                                      action=action.value)

        if action in LLM_ACTIONS:
            return await self._run_llm_action(action, content, params)

        if action in NOTIFY_ACTIONS:
            return await self._notify(action, params, context)

        handler = getattr(self, f"_{action.value}")
        return handler(content, params, context)

    def _initialize(self, content, params, context):
        return {'documentId': context.document_id, 'characters': len(content or '')}

    def _validate(self, content, params, context):
        min_length = int(params.get('minLength', 1))
        length = len((content or '').strip())
        if length < min_length:
            raise AgentExecutionError(
                f"Document has {length} characters, at least {min_length} required",
                action=WorkflowAction.VALIDATE.value
            )
        return {'valid': True, 'characters': length}

    def _extract_text(self, content, params, context):
        text = re.sub(r'\s+', ' ', content or '').strip()
        max_chars = params.get('maxChars')
        if max_chars:
            text = text[:int(max_chars)]
        return {'text': text, 'characters': len(text)}

    def _classify(self, content, params, context):
        detected = detect_document_type(content, self.catalog)
        return {
            'documentTypeId': detected,
            'matchesAssignment': detected == context.document_type_id
        }

    def _complete(self, content, params, context):
        return {'completed': True}

    async def _run_llm_action(self, action: WorkflowAction, content: str,
                              params: Dict[str, Any]) -> Dict[str, Any]:
        if self.llm_client is None:
            raise AgentExecutionError("No LLM endpoint configured", action=action.value)

        prompt = self.llm_client.build_prompt(action.value, content or '', params)
        response = await self.llm_client.complete(prompt)
        return {'response': response}

    async def _notify(self, action: WorkflowAction, params: Dict[str, Any],
                      context: ExecutionContext) -> Dict[str, Any]:
        recipient = {
            WorkflowAction.NOTIFY_ADMIN: 'admin',
            WorkflowAction.NOTIFY_PARALEGAL: 'paralegal',
        }.get(action, context.reviewer)

        await run_blocking(self.notifications.notify, Notice(
            recipient=recipient,
            document_type_id=context.document_type_id,
            document_id=context.document_id,
            reason=params.get('message', f"Workflow action {action.value}"),
            channel=action.value
        ))
        return {'notified': recipient}
