"""
Execution log: completed task results and in-flight pending markers.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..experts import Expert


class PendingStatus(Enum):
    PENDING = "pending"
    ERROR = "error"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{time.time_ns()}_{uuid.uuid4().hex[:5]}"


@dataclass
class PendingMarker:
    expert_id: str
    expert_name: str
    expert_avatar: str = ""
    status: PendingStatus = PendingStatus.PENDING
    error_message: Optional[str] = None
    trigger_by: Optional[str] = None
    id: str = field(default_factory=lambda: _new_id("pending"))

    @classmethod
    def for_expert(cls, expert: Expert, trigger_by: Optional[str] = None) -> "PendingMarker":
        return cls(
            expert_id=expert.id,
            expert_name=expert.name,
            expert_avatar=expert.avatar,
            trigger_by=trigger_by,
        )


@dataclass(frozen=True)
class TaskResult:
    expert_id: str
    expert_name: str
    expert_avatar: str
    task_description: str
    result_content: str
    trigger_by: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: _new_id("task"))

    def to_markdown(self) -> str:
        when = datetime.fromtimestamp(self.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        lines = [
            "# 任务执行报告",
            "",
            f"**执行专家**: {self.expert_name}",
            f"**时间**: {when}",
        ]
        if self.trigger_by:
            lines.append(f"**触发者**: {self.trigger_by}")
        lines += [
            "",
            "## 任务指令",
            self.task_description,
            "",
            "## 执行结果",
            "",
            self.result_content,
        ]
        return "\n".join(lines)

    def export_filename(self) -> str:
        day = datetime.fromtimestamp(self.timestamp).strftime("%Y-%m-%d")
        return f"{self.expert_name}_Task_{day}.md"


class ExecutionLog:
    """Newest-first task results plus the pending markers shown while tasks run."""

    def __init__(self):
        self.results: list[TaskResult] = []
        self.pending: list[PendingMarker] = []

    def add_result(self, result: TaskResult) -> None:
        self.results.insert(0, result)

    def get_result(self, result_id: str) -> Optional[TaskResult]:
        for result in self.results:
            if result.id == result_id:
                return result
        return None

    def delete_result(self, result_id: str) -> bool:
        before = len(self.results)
        self.results = [r for r in self.results if r.id != result_id]
        return len(self.results) != before

    def clear_results(self) -> None:
        self.results.clear()

    def add_pending(self, marker: PendingMarker) -> PendingMarker:
        self.pending.append(marker)
        return marker

    def remove_pending(self, marker_id: str) -> None:
        self.pending = [p for p in self.pending if p.id != marker_id]

    def mark_error(self, marker_id: str, message: str) -> None:
        for marker in self.pending:
            if marker.id == marker_id:
                marker.status = PendingStatus.ERROR
                marker.error_message = message
                return

    def clear_pending_error(self, expert_id: str) -> int:
        """Dismiss the error markers of one expert; running markers are kept."""
        before = len(self.pending)
        self.pending = [
            p for p in self.pending
            if not (p.expert_id == expert_id and p.status == PendingStatus.ERROR)
        ]
        return before - len(self.pending)

    def running(self) -> list[PendingMarker]:
        return [p for p in self.pending if p.status == PendingStatus.PENDING]

    def errors(self) -> list[PendingMarker]:
        return [p for p in self.pending if p.status == PendingStatus.ERROR]

    def results_for(self, expert_id: str) -> list[TaskResult]:
        return [r for r in self.results if r.expert_id == expert_id]
