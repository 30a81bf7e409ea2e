"""
API Blueprints Module
Organizes Flask routes into logical blueprints
"""

from .agent_assignments import agent_assignments_bp
from .agents import agents_bp
from .document_types import document_types_bp
from .monitoring import monitoring_bp

__all__ = ['agent_assignments_bp', 'agents_bp', 'document_types_bp', 'monitoring_bp']
