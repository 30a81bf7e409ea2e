"""
Agent assignment schemas
Validated shapes for agents, workflows and assignments
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from ..errors import ValidationError


class WorkflowAction(str, Enum):
    INITIALIZE = "initialize"
    VALIDATE = "validate"
    EXTRACT_TEXT = "extract_text"
    ANALYZE = "analyze"
    CLASSIFY = "classify"
    SUMMARIZE = "summarize"
    REVIEW = "review"
    NOTIFY_ADMIN = "notify_admin"
    NOTIFY_PARALEGAL = "notify_paralegal"
    NOTIFY_REVIEWER = "notify_reviewer"
    COMPLETE = "complete"


# Parameters each action understands; anything else lands in ``extensions``
ACTION_PARAMETERS: Dict[WorkflowAction, tuple] = {
    WorkflowAction.INITIALIZE: (),
    WorkflowAction.VALIDATE: ('minLength',),
    WorkflowAction.EXTRACT_TEXT: ('maxChars',),
    WorkflowAction.ANALYZE: ('prompt', 'focus'),
    WorkflowAction.CLASSIFY: (),
    WorkflowAction.SUMMARIZE: ('maxWords',),
    WorkflowAction.REVIEW: ('checklist',),
    WorkflowAction.NOTIFY_ADMIN: ('message',),
    WorkflowAction.NOTIFY_PARALEGAL: ('message',),
    WorkflowAction.NOTIFY_REVIEWER: ('message',),
    WorkflowAction.COMPLETE: (),
}

ACTION_DESCRIPTIONS: Dict[WorkflowAction, str] = {
    WorkflowAction.INITIALIZE: 'Prepare the document for processing',
    WorkflowAction.VALIDATE: 'Check that the document has usable text',
    WorkflowAction.EXTRACT_TEXT: 'Normalize and extract the document text',
    WorkflowAction.ANALYZE: 'Legal analysis by the agent model',
    WorkflowAction.CLASSIFY: 'Detect the document type from its content',
    WorkflowAction.SUMMARIZE: 'Summarize the document with the agent model',
    WorkflowAction.REVIEW: 'Review clauses and risks with the agent model',
    WorkflowAction.NOTIFY_ADMIN: 'Notify the firm administrator',
    WorkflowAction.NOTIFY_PARALEGAL: 'Notify the responsible paralegal',
    WorkflowAction.NOTIFY_REVIEWER: 'Notify the default reviewer of the document type',
    WorkflowAction.COMPLETE: 'Mark processing as complete',
}

NOTIFY_ACTIONS = (WorkflowAction.NOTIFY_ADMIN, WorkflowAction.NOTIFY_PARALEGAL,
                  WorkflowAction.NOTIFY_REVIEWER)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class WorkflowStep(CamelModel):
    action: WorkflowAction
    timeout_ms: Optional[int] = Field(None, alias='timeoutMs', gt=0)
    retries: Optional[int] = Field(None, ge=0)
    params: Dict[str, Any] = Field(default_factory=dict)
    extensions: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def split_unknown_fields(cls, data: Any) -> Any:
        """Move unrecognised params and top-level fields into ``extensions``"""
        if not isinstance(data, dict):
            return data

        known_fields = {'action', 'timeoutMs', 'timeout_ms', 'retries', 'params', 'extensions'}
        data = dict(data)
        extensions = dict(data.get('extensions') or {})

        for key in [k for k in data if k not in known_fields]:
            extensions[key] = data.pop(key)

        try:
            action = WorkflowAction(data.get('action'))
        except ValueError:
            # Leave it to field validation to reject the action
            action = None

        if action is not None and isinstance(data.get('params'), dict):
            allowed = ACTION_PARAMETERS[action]
            params = {}
            for key, value in data['params'].items():
                if key in allowed:
                    params[key] = value
                else:
                    extensions[key] = value
            data['params'] = params

        data['extensions'] = extensions
        return data


class Fallback(CamelModel):
    action: WorkflowAction
    notification: Optional[str] = None


class Workflow(CamelModel):
    steps: List[WorkflowStep] = Field(default_factory=list)
    fallback: Fallback


class Agent(CamelModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: str = 'document'
    capabilities: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None

    def allows(self, capability: str) -> bool:
        """Capabilities default to allowed unless explicitly switched off"""
        return self.capabilities.get(capability, True) is not False


class AgentAssignment(CamelModel):
    document_type_id: str = Field(..., alias='documentTypeId', min_length=1)
    agent_id: str = Field(..., alias='agentId', min_length=1)
    workflow: Workflow
    created_at: str = Field(default_factory=_utcnow, alias='createdAt')
    updated_at: str = Field(default_factory=_utcnow, alias='updatedAt')


class AssignmentRequest(CamelModel):
    """Body of POST /api/agent-assignments; an empty agentId means unassign"""
    document_type_id: str = Field(..., alias='documentTypeId', min_length=1)
    agent_id: Optional[str] = Field(None, alias='agentId')
    workflow: Optional[Workflow] = None

    @field_validator('agent_id')
    @classmethod
    def blank_agent_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode='after')
    def workflow_required_for_assign(self) -> 'AssignmentRequest':
        if self.agent_id and self.workflow is None:
            raise ValueError("workflow is required when agentId is set")
        return self


class AssignmentTestRequest(CamelModel):
    document_type_id: str = Field(..., alias='documentTypeId', min_length=1)
    sample_document_id: str = Field(..., alias='sampleDocumentId', min_length=1)


ModelT = TypeVar('ModelT', bound=BaseModel)


def parse_model(model_cls: Type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` into ``model_cls``, raising the FirmSync ValidationError"""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {'loc': list(error['loc']), 'msg': error['msg'], 'type': error['type']}
            for error in e.errors()
        ]
        raise ValidationError(f"Invalid {model_cls.__name__}", details={'errors': errors}) from e
