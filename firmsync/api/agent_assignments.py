"""
Agent Assignment API Blueprint
Bind agents and workflows to document types and test the bindings
"""

import asyncio

from flask import Blueprint, jsonify

from ..assignments.models import (
    ACTION_DESCRIPTIONS,
    ACTION_PARAMETERS,
    AssignmentRequest,
    AssignmentTestRequest,
    WorkflowAction,
    parse_model,
)
from ..errors import NotAssignedError
from ..monitoring import get_logger
from .common import get_json_body, get_services

# Create blueprint
agent_assignments_bp = Blueprint('agent_assignments', __name__, url_prefix='/api/agent-assignments')

# Initialize logger
logger = get_logger('agent_assignments_api')


@agent_assignments_bp.route('', methods=['GET'])
def list_assignments():
    assignments = get_services().store.list_assignments()
    return jsonify({
        'assignments': [a.to_dict() for a in assignments],
        'count': len(assignments)
    })


@agent_assignments_bp.route('', methods=['POST'])
def assign_agent():
    """Assign an agent and workflow; an empty agentId removes the assignment"""
    payload = parse_model(AssignmentRequest, get_json_body())
    store = get_services().store

    if not payload.agent_id:
        removed = store.unassign(payload.document_type_id)
        return jsonify({
            'success': True,
            'assignment': None,
            'removed': removed
        })

    assignment = store.assign(payload.document_type_id, payload.agent_id, payload.workflow)
    return jsonify({
        'success': True,
        'assignment': assignment.to_dict()
    })


@agent_assignments_bp.route('/actions', methods=['GET'])
def list_actions():
    """Workflow actions available to steps and fallbacks"""
    return jsonify({
        'actions': [
            {
                'action': action.value,
                'description': ACTION_DESCRIPTIONS[action],
                'params': list(ACTION_PARAMETERS[action])
            }
            for action in WorkflowAction
        ]
    })


@agent_assignments_bp.route('/test', methods=['POST'])
def test_assignment():
    """Run the assigned workflow against a sample document"""
    payload = parse_model(AssignmentTestRequest, get_json_body())

    result = asyncio.run(get_services().store.test_assignment(
        payload.document_type_id,
        payload.sample_document_id
    ))

    logger.info("Assignment test finished",
                document_type_id=payload.document_type_id,
                sample_document_id=payload.sample_document_id,
                status=result.status.value)
    return jsonify(result.to_dict())


@agent_assignments_bp.route('/<document_type_id>', methods=['GET'])
def get_assignment(document_type_id):
    assignment = get_services().store.get_assignment(document_type_id)
    if assignment is None:
        raise NotAssignedError(document_type_id)
    return jsonify(assignment.to_dict())


@agent_assignments_bp.route('/<document_type_id>', methods=['DELETE'])
def unassign_agent(document_type_id):
    removed = get_services().store.unassign(document_type_id)
    return jsonify({'success': True, 'removed': removed})
