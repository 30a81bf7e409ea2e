"""
Document classification
Catalog loading and keyword based document type detection
"""

from .catalog import (
    Catalog,
    CatalogLoadResult,
    DocumentTypeDefinition,
    build_catalog,
    load_catalog,
    load_vertical_catalog,
    try_load_catalog,
)
from .detector import (
    ScoreResult,
    detect_document_type,
    detect_document_type_with_vertical,
    list_document_type_options,
    score_document_types,
)

__all__ = [
    'Catalog',
    'CatalogLoadResult',
    'DocumentTypeDefinition',
    'ScoreResult',
    'build_catalog',
    'detect_document_type',
    'detect_document_type_with_vertical',
    'list_document_type_options',
    'load_catalog',
    'load_vertical_catalog',
    'score_document_types',
    'try_load_catalog',
]
