"""
Document Types API Blueprint
Catalog listing and keyword based detection
"""

from flask import Blueprint, jsonify

from ..classification import list_document_type_options, score_document_types
from ..classification.detector import TYPE_NAME_BONUS
from ..errors import ValidationError
from ..monitoring import get_logger
from .common import get_json_body, get_services

document_types_bp = Blueprint('document_types', __name__, url_prefix='/api/document-types')

logger = get_logger('document_types_api')


@document_types_bp.route('', methods=['GET'])
def list_document_types():
    """Dropdown options plus full definitions"""
    catalog = get_services().catalog
    return jsonify({
        'options': list_document_type_options(catalog),
        'documentTypes': {type_id: d.to_dict() for type_id, d in catalog.items()},
        'count': len(catalog)
    })


@document_types_bp.route('/detect', methods=['POST'])
def detect():
    data = get_json_body()
    content = data.get('content')
    if not isinstance(content, str):
        raise ValidationError("'content' must be a string")

    services = get_services()
    name_bonus = TYPE_NAME_BONUS if services.config.vertical else 0
    result = score_document_types(content, services.catalog, name_bonus=name_bonus)
    document_type_id = result.best_match()

    logger.info("Document type detected",
                document_type_id=document_type_id,
                content_length=len(content),
                skipped_keywords=len(result.skipped_keywords))

    return jsonify({
        'documentTypeId': document_type_id,
        'scores': result.scores,
        'skippedKeywords': [e.keyword for e in result.skipped_keywords]
    })
