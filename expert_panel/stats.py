"""
Per-model chat request counters for the /stats command.
"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class ModelUsage:
    calls: int = 0
    retries: int = 0
    failures: int = 0
    prompt_tokens_estimate: int = 0


@dataclass
class APICallStats:
    by_model: Dict[str, ModelUsage] = field(default_factory=dict)

    def _usage(self, model: str) -> ModelUsage:
        return self.by_model.setdefault(model, ModelUsage())

    def record_call(self, model: str = "unknown", tokens_estimate: int = 0):
        usage = self._usage(model)
        usage.calls += 1
        usage.prompt_tokens_estimate += tokens_estimate

    def record_retry(self, model: str = "unknown"):
        self._usage(model).retries += 1

    def record_failure(self, model: str = "unknown"):
        self._usage(model).failures += 1

    @property
    def total_calls(self) -> int:
        return sum(u.calls for u in self.by_model.values())

    @property
    def calls_by_model(self) -> Dict[str, int]:
        return {name: u.calls for name, u in self.by_model.items()}

    def reset(self):
        self.by_model.clear()

    def get_summary(self) -> str:
        lines = [f"模型调用: {self.total_calls} 次"]
        for name, usage in self.by_model.items():
            line = f"  {name}: {usage.calls} 次, ~{usage.prompt_tokens_estimate} tokens"
            if usage.retries:
                line += f", 重试 {usage.retries}"
            if usage.failures:
                line += f", 失败 {usage.failures}"
            lines.append(line)
        return "\n".join(lines)


_global_stats = APICallStats()


def get_stats() -> APICallStats:
    return _global_stats


def record_call(model: str = "unknown", tokens_estimate: int = 0):
    _global_stats.record_call(model, tokens_estimate)


def record_retry(model: str = "unknown"):
    _global_stats.record_retry(model)


def record_failure(model: str = "unknown"):
    _global_stats.record_failure(model)


def reset_stats():
    _global_stats.reset()
