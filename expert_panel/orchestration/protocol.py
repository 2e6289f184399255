"""
Delegation protocol embedded in expert responses.

An expert hands a follow-up task to a teammate by writing

    :::DELEGATE:::<teammate name>:::<instruction>:::

anywhere in its answer, any number of times. The directives are stripped from
the text the user sees.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..experts import Expert, Team

SENTINEL = ":::"
DELEGATE_TOKEN = f"{SENTINEL}DELEGATE{SENTINEL}"
DELEGATE_PATTERN = re.compile(r":::DELEGATE:::(.+?):::(.+?):::")

# Root task is depth 0; two delegation hops at most.
MAX_DEPTH = 2


@dataclass(frozen=True)
class Delegation:
    target: Expert
    instruction: str


def format_directive(target_name: str, instruction: str) -> str:
    return f"{DELEGATE_TOKEN}{target_name}{SENTINEL}{instruction}{SENTINEL}"


def strip_directives(text: str) -> str:
    # removing one directive can splice its neighbours into a new one
    while True:
        text, count = DELEGATE_PATTERN.subn("", text)
        if not count:
            return text


def extract_delegations(
    raw_text: str,
    current_depth: int,
    max_depth: int,
    team: Team,
    acting_expert_id: str,
    on_dropped: Optional[Callable[[str, str], None]] = None,
) -> tuple[str, list[Delegation]]:
    """Split a response into user-visible text and follow-up delegations.

    Nothing is delegated once ``current_depth`` reaches ``max_depth``, but the
    directive markup is stripped either way. Targets resolve by case-insensitive
    substring match on the teammate's name; unknown names and self-delegation
    are dropped (reported to ``on_dropped`` with the raw target name and reason).
    """
    delegations: list[Delegation] = []

    if current_depth < max_depth:
        for match in DELEGATE_PATTERN.finditer(raw_text):
            target_name, instruction = match.group(1), match.group(2)
            target = team.find_by_name(target_name)

            if target is None:
                if on_dropped:
                    on_dropped(target_name.strip(), "unknown")
                continue
            if target.id == acting_expert_id:
                if on_dropped:
                    on_dropped(target_name.strip(), "self")
                continue

            delegations.append(Delegation(target=target, instruction=instruction.strip()))

    return strip_directives(raw_text), delegations
