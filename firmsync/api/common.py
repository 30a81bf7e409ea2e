"""Helpers shared by the API blueprints"""

from typing import Any, Dict

from flask import current_app, request

from ..errors import ValidationError


def get_services():
    """Service container of the running app"""
    return current_app.extensions['firmsync']


def get_json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
