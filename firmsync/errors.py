"""
FirmSync exception hierarchy
Each error carries an error code and the HTTP status the API answers with
"""
from typing import Any, Dict, Optional


class FirmSyncError(Exception):
    """Base class for errors surfaced to API callers"""
    http_status = 500
    error_code = 'firmsync_error'

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}


class ConfigLoadError(FirmSyncError):
    """Catalog could not be read or parsed. Never leaves the classifier."""
    error_code = 'config_load_error'

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, details={'path': path} if path else None)
        self.path = path


class KeywordPatternError(FirmSyncError):
    """A single catalog keyword is not a valid pattern"""
    error_code = 'keyword_pattern_error'

    def __init__(self, message: str, keyword: str, document_type_id: str):
        super().__init__(message, details={'keyword': keyword,
                                           'document_type_id': document_type_id})
        self.keyword = keyword
        self.document_type_id = document_type_id


class ValidationError(FirmSyncError):
    http_status = 400
    error_code = 'validation_error'


class NotAssignedError(FirmSyncError):
    """No agent is bound to the document type"""
    http_status = 404
    error_code = 'not_assigned'

    def __init__(self, document_type_id: str):
        super().__init__(f"No agent assigned to document type '{document_type_id}'",
                         details={'document_type_id': document_type_id})
        self.document_type_id = document_type_id


class AgentNotFoundError(FirmSyncError):
    http_status = 404
    error_code = 'agent_not_found'

    def __init__(self, agent_id: str):
        super().__init__(f"Agent not found: {agent_id}", details={'agent_id': agent_id})
        self.agent_id = agent_id


class UnknownDocumentTypeError(FirmSyncError):
    http_status = 404
    error_code = 'unknown_document_type'

    def __init__(self, document_type_id: str):
        super().__init__(f"Unknown document type: {document_type_id}",
                         details={'document_type_id': document_type_id})
        self.document_type_id = document_type_id


class DocumentNotFoundError(FirmSyncError):
    http_status = 404
    error_code = 'document_not_found'

    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}", details={'document_id': document_id})
        self.document_id = document_id


class StorageError(FirmSyncError):
    """Persistence failure, never retried by the store"""
    http_status = 500
    error_code = 'storage_error'


class StepFailure(FirmSyncError):
    """A workflow step exhausted its retries. Reported in the TestResult, not raised."""
    error_code = 'step_failure'

    def __init__(self, action: str, attempts: int, reason: str):
        super().__init__(f"Step '{action}' failed after {attempts} attempt(s): {reason}",
                         details={'action': action, 'attempts': attempts})
        self.action = action
        self.attempts = attempts
        self.reason = reason


class AgentExecutionError(FirmSyncError):
    """An agent action reported failure; status_code feeds retry decisions"""
    error_code = 'agent_execution_error'

    def __init__(self, message: str, action: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, details={'action': action} if action else None)
        self.action = action
        # Upstream HTTP status when the failure came from a remote call
        self.status_code = status_code
