"""
Sample Document Repository
Resolves document ids to text for workflow test runs
"""

from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from ..errors import DocumentNotFoundError, StorageError
from ..monitoring import get_logger


class DocumentRepository:
    """Reads ``<id>.txt`` or ``<id>.pdf`` from the documents directory"""

    SUPPORTED_SUFFIXES = ('.txt', '.pdf')

    def __init__(self, documents_dir, max_pages: int = 3):
        """
        Args:
            documents_dir: Directory holding sample documents
            max_pages: Number of PDF pages to extract text from
        """
        self.documents_dir = Path(documents_dir)
        self.max_pages = max_pages
        self.logger = get_logger('documents')

    def _find(self, document_id: str) -> Optional[Path]:
        # Ids are plain names, never paths
        if not document_id or Path(document_id).name != document_id:
            return None
        for suffix in self.SUPPORTED_SUFFIXES:
            candidate = self.documents_dir / f"{document_id}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def exists(self, document_id: str) -> bool:
        return self._find(document_id) is not None

    def get_content(self, document_id: str) -> str:
        path = self._find(document_id)
        if path is None:
            raise DocumentNotFoundError(document_id)

        try:
            if path.suffix == '.pdf':
                return self._extract_pdf_text(path)
            return path.read_text(encoding='utf-8', errors='replace')
        except (OSError, RuntimeError, ValueError) as e:
            self.logger.error("Failed to read sample document", document_id=document_id, exception=e)
            raise StorageError(f"Failed to read document {document_id}: {e}") from e

    def _extract_pdf_text(self, path: Path) -> str:
        doc = fitz.open(str(path))
        try:
            text = ""
            for page_num in range(min(self.max_pages, len(doc))):
                text += doc[page_num].get_text()
        finally:
            doc.close()
        return text.strip()
