"""
Agents API Blueprint
Manage the agents that assignments refer to
"""

from flask import Blueprint, jsonify

from ..assignments.models import Agent, parse_model
from ..errors import AgentNotFoundError
from ..monitoring import get_logger
from .common import get_json_body, get_services

agents_bp = Blueprint('agents', __name__, url_prefix='/api/agents')

logger = get_logger('agents_api')


@agents_bp.route('', methods=['GET'])
def list_agents():
    agents = get_services().storage.list_agents()
    return jsonify({
        'agents': [a.to_dict() for a in agents],
        'count': len(agents)
    })


@agents_bp.route('', methods=['POST'])
def save_agent():
    """Create or replace an agent"""
    agent = parse_model(Agent, get_json_body())
    get_services().storage.upsert_agent(agent)

    logger.info("Agent saved", agent_id=agent.id, name=agent.name)
    return jsonify({'success': True, 'agent': agent.to_dict()})


@agents_bp.route('/<agent_id>', methods=['DELETE'])
def delete_agent(agent_id):
    """Delete an agent together with its assignments"""
    services = get_services()
    if services.storage.get_agent(agent_id) is None:
        raise AgentNotFoundError(agent_id)

    removed = services.store.remove_agent(agent_id)
    return jsonify({'success': True, 'removedAssignments': removed})
