"""
Model invocation adapter.
Turns (expert persona, instruction, project context, teammates) into one chat request.
"""

from typing import Optional, Protocol

from ..clients import Message, Role
from ..config import ModelConfig
from ..experts import Expert
from .protocol import MAX_DEPTH, format_directive

LANGUAGE_NAMES = {
    "zh": "Chinese",
    "en": "English",
}


class CompletionBackend(Protocol):
    async def complete(
        self,
        messages: list[Message],
        model: Optional[ModelConfig] = None,
        json_mode: bool = False,
    ) -> str:
        ...


def format_teammates(teammates: list[Expert]) -> str:
    return "\n".join(f"- {e.name} ({e.role.value})" for e in teammates)


def build_prompt(
    expert: Expert,
    instruction: str,
    project_context: str,
    teammates: list[Expert],
    depth: int = 0,
    language: str = "zh",
) -> str:
    lines = [
        f"[Project]: {project_context}",
        f"[Role]: {expert.name} ({expert.role.value}) - {expert.description}",
        f"[Team]:\n{format_teammates(teammates)}",
        f"[Task]: {instruction}",
        "",
        f"Please respond professionally in {LANGUAGE_NAMES.get(language, language)} (Markdown).",
    ]

    if teammates and depth < MAX_DEPTH:
        example = format_directive("<teammate name>", "<follow-up task>")
        lines.append(
            "If a teammate should follow up on part of this task, add one line per request "
            f"in exactly this form: {example}"
        )

    return "\n".join(lines)


async def invoke(
    backend: CompletionBackend,
    expert: Expert,
    instruction: str,
    project_context: str,
    teammates: list[Expert],
    depth: int = 0,
    model: Optional[ModelConfig] = None,
    language: str = "zh",
) -> str:
    """Ask ``expert`` to carry out ``instruction``; backend errors propagate."""
    teammates = [e for e in teammates if e.id != expert.id]
    messages = [
        Message(role=Role.SYSTEM, content=f"You are {expert.name}."),
        Message(
            role=Role.USER,
            content=build_prompt(expert, instruction, project_context, teammates, depth, language),
        ),
    ]
    return await backend.complete(messages, model)
