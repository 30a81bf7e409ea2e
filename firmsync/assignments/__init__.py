"""
Agent Assignments Module
Schemas and persistence for document type -> agent bindings
"""

from .models import (
    Agent,
    AgentAssignment,
    AssignmentRequest,
    AssignmentTestRequest,
    Fallback,
    Workflow,
    WorkflowAction,
    WorkflowStep,
    parse_model,
)
from .storage import AssignmentStorage, JsonFileStorage

__all__ = [
    'Agent',
    'AgentAssignment',
    'AssignmentRequest',
    'AssignmentTestRequest',
    'AssignmentStorage',
    'Fallback',
    'JsonFileStorage',
    'Workflow',
    'WorkflowAction',
    'WorkflowStep',
    'parse_model',
]
