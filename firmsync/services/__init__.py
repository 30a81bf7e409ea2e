"""
Services Module
Agent execution, workflow running, documents and notifications
"""

from .agent_executor import AgentExecutor, ExecutionContext, LocalAgentExecutor
from .documents import DocumentRepository
from .llm_client import LLMClient
from .notifications import Notice, NotificationService, SMTPSettings
from .workflow_engine import TestResult, WorkflowEngine, WorkflowStatus

__all__ = [
    'AgentExecutor',
    'DocumentRepository',
    'ExecutionContext',
    'LLMClient',
    'LocalAgentExecutor',
    'Notice',
    'NotificationService',
    'SMTPSettings',
    'TestResult',
    'WorkflowEngine',
    'WorkflowStatus',
]
