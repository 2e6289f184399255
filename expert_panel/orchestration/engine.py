"""
Task execution engine.

Fans an instruction out to several experts at once, lets experts hand follow-up
work to teammates through delegation directives, and keeps the execution log,
the active task counter and the cancellation flag consistent while tasks settle.

All bookkeeping runs on one asyncio event loop and is only touched between
awaits, so no locking is needed.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Coroutine, Optional

from rich.console import Console

from ..config import ModelConfig
from ..experts import Expert, Team
from ..i18n import t
from . import adapter
from .adapter import CompletionBackend
from .log import ExecutionLog, PendingMarker, TaskResult
from .protocol import MAX_DEPTH, Delegation, extract_delegations

console = Console()


class TaskState(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABANDONED = "abandoned"


class EngineEvent(Enum):
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABANDONED = "abandoned"
    DELEGATED = "delegated"
    CANCELLED = "cancelled"


class BatchValidationError(ValueError):
    """The batch was rejected before anything was dispatched."""


@dataclass(frozen=True, eq=False)
class TaskInvocation:
    expert: Expert
    instruction: str
    trigger_by: Optional[str] = None
    depth: int = 0

    @property
    def is_delegated(self) -> bool:
        return self.depth > 0


@dataclass(frozen=True)
class BatchContext:
    team: Team
    project_context: str
    model: Optional[ModelConfig] = None


class TaskEngine:
    def __init__(
        self,
        backend: CompletionBackend,
        team: Optional[Team] = None,
        project_context: str = "",
        model: Optional[ModelConfig] = None,
        language: str = "zh",
        delegation_delay: float = 1.0,
        max_depth: int = MAX_DEPTH,
        on_event: Optional[Callable[[EngineEvent, Any], None]] = None,
        verbose: bool = False,
    ):
        self.backend = backend
        self.team = team or Team()
        self.project_context = project_context
        self.model = model
        self.language = language
        self.delegation_delay = delegation_delay
        self.max_depth = max_depth
        self.on_event = on_event
        self.verbose = verbose

        self.log = ExecutionLog()
        self.active_count = 0
        self.cancelled = False
        self.termination_notice: Optional[str] = None
        self.states: dict[TaskInvocation, TaskState] = {}
        self._tasks: set[asyncio.Task] = set()
        # counter share of tasks whose body has not started yet
        self._unclaimed: dict[asyncio.Task, int] = {}

    @property
    def is_processing(self) -> bool:
        return self.active_count > 0

    def _emit(self, event: EngineEvent, payload: Any = None):
        if self.on_event:
            self.on_event(event, payload)

    def _trace(self, message: str):
        if self.verbose:
            console.print(f"[dim]{message}[/dim]")

    def _spawn(self, coro: Coroutine[Any, Any, None], reserved: int = 0) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        if reserved:
            self._unclaimed[task] = reserved
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        # cancelled before its first step, so its own settle never ran
        self._settle(self._unclaimed.pop(task, 0))

    def _claim(self):
        self._unclaimed.pop(asyncio.current_task(), None)

    def _settle(self, count: int = 1):
        self.active_count = max(0, self.active_count - count)

    def validate_batch(self, experts: list[Expert], instruction: str):
        if not experts:
            raise BatchValidationError(t("validation_no_experts"))
        if not instruction.strip():
            raise BatchValidationError(t("validation_no_instruction"))
        if not self.project_context.strip():
            raise BatchValidationError(t("validation_no_project"))

    def dispatch_batch(self, experts: list[Expert], instruction: str) -> list[TaskInvocation]:
        """Start one root task per expert; must be called with a running event loop."""
        self.validate_batch(experts, instruction)

        self.cancelled = False
        self.termination_notice = None

        batch = BatchContext(
            team=self.team.snapshot(),
            project_context=self.project_context,
            model=self.model,
        )
        invocations = [TaskInvocation(expert=e, instruction=instruction) for e in experts]

        if not self.is_processing:
            # states of earlier batches are final by now
            self.states.clear()

        self.active_count += len(invocations)
        self._trace(f"并发执行 {len(invocations)} 个专家任务...")

        for invocation in invocations:
            self.states[invocation] = TaskState.QUEUED
            self._spawn(self._execute_one(invocation, batch), reserved=1)

        return invocations

    async def _execute_one(self, invocation: TaskInvocation, batch: BatchContext):
        self._claim()
        expert = invocation.expert

        if invocation.is_delegated and self.cancelled:
            self.states[invocation] = TaskState.ABANDONED
            self._settle()
            self._trace(f"已终止，跳过 {expert.name} 的后续任务")
            self._emit(EngineEvent.ABANDONED, invocation)
            return

        marker = self.log.add_pending(PendingMarker.for_expert(expert, invocation.trigger_by))
        self.states[invocation] = TaskState.RUNNING
        self._trace(f"→ {expert.name} 处理中...")
        self._emit(EngineEvent.STARTED, marker)

        try:
            raw_text = await adapter.invoke(
                self.backend,
                expert,
                invocation.instruction,
                batch.project_context,
                batch.team.teammates_of(expert.id),
                depth=invocation.depth,
                model=batch.model,
                language=self.language,
            )

            cleaned, follow_ups = extract_delegations(
                raw_text,
                invocation.depth,
                self.max_depth,
                batch.team,
                expert.id,
                on_dropped=lambda name, reason: self._trace(
                    f"忽略 {expert.name} 的委派指令: {name} ({reason})"
                ),
            )

            result = TaskResult(
                expert_id=expert.id,
                expert_name=expert.name,
                expert_avatar=expert.avatar,
                task_description=invocation.instruction,
                result_content=cleaned,
                trigger_by=invocation.trigger_by,
            )
            self.log.add_result(result)
            self.log.remove_pending(marker.id)
            self.states[invocation] = TaskState.SUCCEEDED
            self._emit(EngineEvent.SUCCEEDED, result)

            if follow_ups and not self.cancelled:
                self.active_count += len(follow_ups)
                self._spawn(
                    self._schedule_follow_ups(invocation, follow_ups, batch),
                    reserved=len(follow_ups),
                )

        except asyncio.CancelledError:
            self.log.remove_pending(marker.id)
            raise

        except Exception as e:
            message = str(e) or t("unknown_error")
            self.log.mark_error(marker.id, message)
            self.states[invocation] = TaskState.FAILED
            self._trace(f"✗ {expert.name}: {message}")
            self._emit(EngineEvent.FAILED, marker)

        finally:
            self._settle()

    async def _schedule_follow_ups(
        self,
        parent: TaskInvocation,
        follow_ups: list[Delegation],
        batch: BatchContext,
    ):
        self._claim()
        try:
            await asyncio.sleep(self.delegation_delay)
        except asyncio.CancelledError:
            self._settle(len(follow_ups))
            raise

        for delegation in follow_ups:
            invocation = TaskInvocation(
                expert=delegation.target,
                instruction=delegation.instruction,
                trigger_by=parent.expert.name,
                depth=parent.depth + 1,
            )
            self.states[invocation] = TaskState.QUEUED
            self._trace(f"{parent.expert.name} → {delegation.target.name}: {delegation.instruction[:60]}")
            self._emit(EngineEvent.DELEGATED, invocation)
            self._spawn(self._execute_one(invocation, batch), reserved=1)

    def cancel(self) -> str:
        """Stop new delegated tasks from starting; running calls finish normally."""
        self.cancelled = True
        self.termination_notice = t("termination_notice")
        self._emit(EngineEvent.CANCELLED, self.termination_notice)
        return self.termination_notice

    async def wait_until_idle(self):
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self):
        for task in list(self._tasks):
            task.cancel()
        await self.wait_until_idle()
        for invocation, state in self.states.items():
            if state in (TaskState.QUEUED, TaskState.RUNNING):
                self.states[invocation] = TaskState.ABANDONED

    def delete_result(self, result_id: str) -> bool:
        return self.log.delete_result(result_id)

    def clear_pending_error(self, expert_id: str) -> int:
        return self.log.clear_pending_error(expert_id)

    def clear_all_results(self):
        self.log.clear_results()

    @property
    def results(self) -> list[TaskResult]:
        return self.log.results

    @property
    def pending(self) -> list[PendingMarker]:
        return self.log.pending
