"""
Document Type Catalog
Loads the configured document types (shared file or per-vertical filetypes)
"""

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import ConfigLoadError
from ..monitoring import get_logger

logger = get_logger('document_types')

RISK_LEVELS = ('low', 'medium', 'high')

VERTICAL_CATEGORIES = {
    'firmsync': {
        'nda': 'corporate',
        'contract': 'corporate',
        'lease': 'real_estate',
        'employment': 'employment',
        'settlement': 'dispute_resolution',
        'litigation': 'dispute_resolution'
    },
    'medsync': {
        'patient_record': 'patient_records',
        'consent_form': 'clinical_protocols',
        'incident_report': 'medical_legal'
    },
    'edusync': {
        'syllabus': 'curriculum_documents',
        'accreditation_report': 'accreditation'
    },
    'hrsync': {
        'job_description': 'recruitment',
        'disciplinary_action': 'employee_relations'
    }
}

VERTICAL_REVIEWERS = {
    'firmsync': 'paralegal',
    'medsync': 'nurse_manager',
    'edusync': 'dean',
    'hrsync': 'hr_manager'
}


@dataclass(frozen=True)
class DocumentTypeDefinition:
    """One catalog entry"""
    id: str
    display_name: str
    category: str
    risk_level: str
    default_reviewer: str
    keywords: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, type_id: str, data: Dict[str, Any]) -> 'DocumentTypeDefinition':
        keywords = data.get('keywords') or []
        if not isinstance(keywords, list):
            keywords = []

        risk_level = data.get('riskLevel', 'medium')
        if risk_level not in RISK_LEVELS:
            logger.warning("Unknown risk level, using medium",
                           document_type_id=type_id, risk_level=risk_level)
            risk_level = 'medium'

        return cls(
            id=type_id,
            display_name=data.get('displayName') or format_display_name(type_id),
            category=data.get('category', 'general'),
            risk_level=risk_level,
            default_reviewer=data.get('defaultReviewer', 'reviewer'),
            # Non-string keywords are dropped here, not at scoring time
            keywords=tuple(k for k in keywords if isinstance(k, str) and k)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'displayName': self.display_name,
            'category': self.category,
            'riskLevel': self.risk_level,
            'defaultReviewer': self.default_reviewer,
            'keywords': list(self.keywords)
        }


Catalog = Mapping[str, DocumentTypeDefinition]


@dataclass(frozen=True)
class CatalogLoadResult:
    """Catalog plus the load error, if the catalog is empty because loading failed"""
    catalog: Catalog
    error: Optional[ConfigLoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_catalog(entries: Iterable[Tuple[str, Dict[str, Any]]]) -> Catalog:
    """Freeze ``(id, data)`` pairs into a read-only catalog, keeping their order"""
    return MappingProxyType({
        type_id: DocumentTypeDefinition.from_dict(type_id, data or {})
        for type_id, data in entries
    })


EMPTY_CATALOG: Catalog = MappingProxyType({})


def try_load_catalog(path) -> CatalogLoadResult:
    """
    Load the shared catalog file

    The file holds ``{"documentTypes": {id: {displayName, category, riskLevel,
    defaultReviewer, keywords}}}``.

    Returns:
        CatalogLoadResult, with an empty catalog and the error on failure
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        document_types = data.get('documentTypes', {}) if isinstance(data, dict) else None
        if not isinstance(document_types, dict):
            raise ValueError("'documentTypes' must be an object")

        catalog = build_catalog(document_types.items())
        logger.info("Document type catalog loaded", path=str(path), count=len(catalog))
        return CatalogLoadResult(catalog)

    except (OSError, ValueError, TypeError, AttributeError) as e:
        error = ConfigLoadError(f"Failed to load document types configuration: {e}", path=str(path))
        logger.warning("Failed to load document types configuration",
                       path=str(path), error=str(e))
        return CatalogLoadResult(EMPTY_CATALOG, error)


def load_catalog(path) -> Catalog:
    """Load the shared catalog; never raises, degrades to an empty catalog"""
    return try_load_catalog(path).catalog


def format_display_name(type_id: str) -> str:
    return ' '.join(word.capitalize() for word in type_id.split('_'))


def generate_keywords(type_id: str) -> List[str]:
    words = type_id.split('_')
    return words + [type_id.replace('_', ' ', 1)]


def load_vertical_catalog(vertical: str, verticals_dir, fallback_path) -> Catalog:
    """
    Build the catalog of an industry vertical from its filetypes directory

    Every ``verticals/<vertical>/filetypes/<type>.json`` becomes one entry.
    Falls back to the shared catalog file when the directory is missing or
    unreadable.
    """
    filetypes_dir = Path(verticals_dir) / vertical / 'filetypes'
    try:
        entries = []
        for file_path in sorted(filetypes_dir.glob('*.json')):
            with open(file_path, 'r', encoding='utf-8') as f:
                config = json.load(f)

            type_id = file_path.stem
            keywords = generate_keywords(type_id)
            for keyword in config.get('keywords', []):
                if keyword not in keywords:
                    keywords.append(keyword)

            entries.append((type_id, {
                'displayName': format_display_name(type_id),
                'category': VERTICAL_CATEGORIES.get(vertical, {}).get(type_id, 'general'),
                'riskLevel': config.get('riskLevel', 'medium'),
                'defaultReviewer': config.get('defaultReviewer',
                                              VERTICAL_REVIEWERS.get(vertical, 'reviewer')),
                'keywords': keywords
            }))

        if not entries:
            raise FileNotFoundError(f"No filetypes found in {filetypes_dir}")

        logger.info("Vertical catalog loaded", vertical=vertical, count=len(entries))
        return build_catalog(entries)

    except (OSError, ValueError, AttributeError) as e:
        logger.warning("Could not load vertical document types, using shared catalog",
                       vertical=vertical, error=str(e))
        return load_catalog(fallback_path)
