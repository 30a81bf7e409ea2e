"""
Workflow Engine
Runs an assignment workflow step by step with per-step timeouts, retries and a fallback
"""

import asyncio
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..assignments.models import NOTIFY_ACTIONS, Agent, Fallback, Workflow, WorkflowStep
from ..errors import StepFailure
from ..monitoring import get_logger, log_performance
from ..utils.blocking import run_blocking
from .agent_executor import AgentExecutor, ExecutionContext
from .notifications import Notice, NotificationService


class WorkflowStatus(Enum):
    COMPLETED = "completed"
    FELL_BACK = "fell_back"
    FAILED = "failed"


@dataclass
class StepResult:
    action: str
    status: str
    attempts: int
    duration_ms: float
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'action': self.action,
            'status': self.status,
            'attempts': self.attempts,
            'durationMs': round(self.duration_ms, 3),
            'output': self.output,
            'error': self.error
        }


@dataclass
class FallbackResult:
    action: str
    status: str
    reason: str
    notified: bool = False
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TestResult:
    """Outcome of running a workflow against one document"""
    __test__ = False

    document_type_id: str
    sample_document_id: str
    agent_id: str
    status: WorkflowStatus
    steps: List[StepResult] = field(default_factory=list)
    fallback: Optional[FallbackResult] = None
    processing_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == WorkflowStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'documentTypeId': self.document_type_id,
            'sampleDocumentId': self.sample_document_id,
            'agentId': self.agent_id,
            'status': self.status.value,
            'success': self.success,
            'steps': [step.to_dict() for step in self.steps],
            'fallback': self.fallback.to_dict() if self.fallback else None,
            'processingTime': round(self.processing_time, 3)
        }


class WorkflowEngine:
    """Executes workflows through an agent executor"""

    def __init__(self, executor: AgentExecutor, notifications: NotificationService,
                 default_retries: int = 0, default_timeout_ms: int = 30000,
                 fallback_timeout_ms: int = 30000):
        """
        Args:
            executor: Performs individual actions
            notifications: Receives fallback notices
            default_retries: Retries for steps that do not set their own
            default_timeout_ms: Timeout for steps that do not set their own
            fallback_timeout_ms: Upper bound for the single fallback attempt
        """
        self.logger = get_logger('workflow_engine')
        self.executor = executor
        self.notifications = notifications
        self.default_retries = default_retries
        self.default_timeout_ms = default_timeout_ms
        self.fallback_timeout_ms = fallback_timeout_ms

    @log_performance('workflow_run')
    async def run(self, agent: Agent, workflow: Workflow, content: str,
                  context: ExecutionContext) -> TestResult:
        """
        Run every step in order; the first step that exhausts its retries
        stops the sequence and triggers the fallback.
        """
        start_time = time.monotonic()
        result = TestResult(
            document_type_id=context.document_type_id,
            sample_document_id=context.document_id,
            agent_id=agent.id,
            status=WorkflowStatus.COMPLETED
        )

        failure: Optional[StepFailure] = None
        for step in workflow.steps:
            step_result = await self._run_step(agent, step, content, context)
            result.steps.append(step_result)

            if step_result.status != 'completed':
                failure = StepFailure(step.action.value, step_result.attempts, step_result.error or 'failed')
                break

        if failure is not None or not workflow.steps:
            reason = failure.message if failure else "Workflow has no steps"
            result.fallback = await self._run_fallback(agent, workflow.fallback, content, context, reason)
            result.status = (WorkflowStatus.FELL_BACK if result.fallback.status == 'completed'
                             else WorkflowStatus.FAILED)

        result.processing_time = time.monotonic() - start_time

        self.logger.info("Workflow run finished",
                         document_type_id=context.document_type_id,
                         document_id=context.document_id,
                         agent_id=agent.id,
                         status=result.status.value,
                         steps_run=len(result.steps),
                         processing_time=result.processing_time)
        return result

    async def _attempt(self, agent: Agent, action, content: str, params: Dict[str, Any],
                       context: ExecutionContext, timeout_ms: int) -> Dict[str, Any]:
        return await asyncio.wait_for(
            self.executor.execute(agent, action, content, params, context),
            timeout=timeout_ms / 1000.0
        )

    async def _run_step(self, agent: Agent, step: WorkflowStep, content: str,
                        context: ExecutionContext) -> StepResult:
        retries = step.retries if step.retries is not None else self.default_retries
        timeout_ms = step.timeout_ms or self.default_timeout_ms
        max_attempts = retries + 1
        start_time = time.monotonic()
        last_error = None

        for attempt in range(1, max_attempts + 1):
            try:
                output = await self._attempt(agent, step.action, content, step.params,
                                             context, timeout_ms)
                return StepResult(
                    action=step.action.value,
                    status='completed',
                    attempts=attempt,
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    output=output
                )
            except asyncio.TimeoutError:
                last_error = f"Timed out after {timeout_ms}ms"
                self.logger.warning("Workflow step timed out",
                                    action=step.action.value,
                                    attempt=attempt,
                                    max_attempts=max_attempts,
                                    timeout_ms=timeout_ms)
            except Exception as e:
                last_error = str(e) or type(e).__name__
                self.logger.error("Workflow step failed",
                                  action=step.action.value,
                                  attempt=attempt,
                                  max_attempts=max_attempts,
                                  exception=e)

        return StepResult(
            action=step.action.value,
            status='failed',
            attempts=max_attempts,
            duration_ms=(time.monotonic() - start_time) * 1000,
            error=last_error
        )

    async def _run_fallback(self, agent: Agent, fallback: Fallback, content: str,
                            context: ExecutionContext, reason: str) -> FallbackResult:
        result = FallbackResult(action=fallback.action.value, status='completed', reason=reason)

        try:
            result.output = await self._attempt(agent, fallback.action, content, {},
                                                context, self.fallback_timeout_ms)
        except asyncio.TimeoutError:
            result.status = 'failed'
            result.error = f"Timed out after {self.fallback_timeout_ms}ms"
        except Exception as e:
            result.status = 'failed'
            result.error = str(e) or type(e).__name__
            self.logger.error("Fallback action failed", action=fallback.action.value, exception=e)

        if fallback.notification:
            if fallback.action in NOTIFY_ACTIONS and result.status == 'completed':
                # The fallback action already delivered a notice for this run
                result.notified = True
            else:
                result.notified = await self._send_notice(fallback.notification, context, reason)

        return result

    async def _send_notice(self, channel: str, context: ExecutionContext, reason: str) -> bool:
        try:
            await run_blocking(self.notifications.notify, Notice(
                recipient=context.reviewer,
                document_type_id=context.document_type_id,
                document_id=context.document_id,
                reason=reason,
                channel=channel
            ))
            return True
        except Exception as e:
            # Delivery problems never change the workflow status
            self.logger.error("Fallback notification failed",
                              channel=channel,
                              document_type_id=context.document_type_id,
                              exception=e)
            return False
