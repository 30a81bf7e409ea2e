"""
Document Type Detection
Keyword scoring of document text against the document type catalog
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import KeywordPatternError
from ..monitoring import get_logger
from .catalog import Catalog

logger = get_logger('document_type_detection')

TYPE_NAME_BONUS = 5


@dataclass
class ScoreResult:
    """Per-type scores plus the keywords that could not be used"""
    scores: Dict[str, int] = field(default_factory=dict)
    skipped_keywords: List[KeywordPatternError] = field(default_factory=list)

    def best_match(self) -> Optional[str]:
        """Highest positive score; ties go to the type seen first"""
        best_type = None
        best_score = 0
        for type_id, score in self.scores.items():
            if score > best_score:
                best_type = type_id
                best_score = score
        return best_type


def _count_occurrences(keyword: str, content_lower: str) -> int:
    pattern = re.compile(keyword.lower())
    return sum(1 for _ in pattern.finditer(content_lower))


def score_document_types(content: Any, catalog: Catalog, name_bonus: int = 0) -> ScoreResult:
    """
    Score every catalog type by keyword occurrences in ``content``

    Args:
        content: Document text; anything that is not a non-empty string scores nothing
        catalog: Document type catalog
        name_bonus: Points added when the type name itself appears in the text

    Returns:
        ScoreResult with one entry per catalog type, in catalog order
    """
    result = ScoreResult()
    if not content or not isinstance(content, str):
        return result

    content_lower = content.lower()

    for type_id, definition in catalog.items():
        score = 0
        for keyword in definition.keywords:
            try:
                score += _count_occurrences(keyword, content_lower)
            except re.error as e:
                result.skipped_keywords.append(KeywordPatternError(
                    f"Invalid keyword pattern: {e}", keyword=keyword, document_type_id=type_id
                ))
                logger.warning("Error matching keyword",
                               keyword=keyword, document_type_id=type_id, error=str(e))

        if name_bonus and type_id.replace('_', ' ', 1).lower() in content_lower:
            score += name_bonus

        result.scores[type_id] = score

    return result


def detect_document_type(content: Any, catalog: Catalog) -> Optional[str]:
    """Best matching document type id for ``content``, or None"""
    return score_document_types(content, catalog).best_match()


def detect_document_type_with_vertical(content: Any, catalog: Catalog) -> Optional[str]:
    """Like detect_document_type, with a bonus for literal type name mentions"""
    return score_document_types(content, catalog, name_bonus=TYPE_NAME_BONUS).best_match()


def list_document_type_options(catalog: Catalog) -> List[Dict[str, str]]:
    """Dropdown entries for the UI, in catalog order"""
    return [
        {
            'id': type_id,
            'displayLabel': definition.display_name,
            'category': definition.category
        }
        for type_id, definition in catalog.items()
    ]
