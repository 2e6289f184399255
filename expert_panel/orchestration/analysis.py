"""
Whole-team analysis, arena mode and persona generation.
"""

import asyncio
import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from ..clients import BACKEND_ERRORS, Message, Role
from ..config import ModelConfig
from ..experts import Expert, ExpertRole, Team, avatar_url, new_custom_id
from ..i18n import t
from .adapter import CompletionBackend

RISK_LEVELS = ("Low", "Medium", "High", "Critical")
SENTIMENTS = ("positive", "neutral", "negative")

JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


@dataclass
class ExpertInsight:
    expert_name: str
    role: str
    score: int
    sentiment: str
    key_point: str


@dataclass
class StructuredAnalysis:
    overall_score: int
    risk_level: str
    summary: str
    expert_insights: list[ExpertInsight] = field(default_factory=list)


@dataclass
class AnalysisResult:
    id: str
    model_name: str
    content: str
    structured: Optional[StructuredAnalysis] = None
    team_composition: list[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "model_name": self.model_name,
            "content": self.content,
            "team_composition": self.team_composition,
            "timestamp": self.timestamp,
            "structured": None,
        }
        if self.structured:
            data["structured"] = {
                "overallScore": self.structured.overall_score,
                "riskLevel": self.structured.risk_level,
                "summary": self.structured.summary,
                "expertInsights": [
                    {
                        "expertName": i.expert_name,
                        "role": i.role,
                        "score": i.score,
                        "sentiment": i.sentiment,
                        "keyPoint": i.key_point,
                    }
                    for i in self.structured.expert_insights
                ],
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        return cls(
            id=data["id"],
            model_name=data.get("model_name", ""),
            content=data.get("content", ""),
            structured=parse_structured(data.get("structured")),
            team_composition=list(data.get("team_composition", [])),
            timestamp=data.get("timestamp", time.time()),
        )


def _clamp_score(value: Any) -> int:
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return 0


def parse_structured(data: Any) -> Optional[StructuredAnalysis]:
    if not isinstance(data, dict):
        return None

    risk = str(data.get("riskLevel", "Medium")).capitalize()
    insights = []
    for item in data.get("expertInsights") or []:
        if not isinstance(item, dict):
            continue
        sentiment = str(item.get("sentiment", "neutral")).lower()
        insights.append(ExpertInsight(
            expert_name=str(item.get("expertName", "")),
            role=str(item.get("role", "")),
            score=_clamp_score(item.get("score")),
            sentiment=sentiment if sentiment in SENTIMENTS else "neutral",
            key_point=str(item.get("keyPoint", "")),
        ))

    return StructuredAnalysis(
        overall_score=_clamp_score(data.get("overallScore")),
        risk_level=risk if risk in RISK_LEVELS else "Medium",
        summary=str(data.get("summary", "")),
        expert_insights=insights,
    )


def extract_json(text: str) -> Optional[dict[str, Any]]:
    # models sometimes wrap the JSON in markdown fences
    match = JSON_BLOCK.search(text)
    candidate = match.group() if match else text
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def build_analysis_prompt(project_text: str, team: Team) -> str:
    experts_context = "\n".join(
        f"Name: {e.name}, Role: {e.role.value}, Desc: {e.description}" for e in team
    )
    return f"""Analyze this project: {project_text}

Experts:
{experts_context}

Output JSON only with: overallScore (0-100), riskLevel (Low/Medium/High/Critical), summary,
expertInsights[] (expertName, role, score 0-100, sentiment positive/neutral/negative, keyPoint)."""


async def run_team_analysis(
    backend: CompletionBackend,
    project_text: str,
    team: Team,
    model: ModelConfig,
) -> AnalysisResult:
    response = await backend.complete(
        [Message(role=Role.USER, content=build_analysis_prompt(project_text, team))],
        model,
        json_mode=True,
    )

    return AnalysisResult(
        id=f"analysis_{time.time_ns()}",
        model_name=model.name,
        content=response,
        structured=parse_structured(extract_json(response)),
        team_composition=[e.role.value for e in team],
    )


async def run_arena(
    backend: CompletionBackend,
    project_text: str,
    team: Team,
    models: list[ModelConfig],
) -> list[AnalysisResult]:
    """Run the same team analysis on every model concurrently."""
    if len(team) == 0:
        raise ValueError(t("arena_no_team"))
    if len(models) < 2:
        raise ValueError(t("arena_min_models"))
    if not project_text.strip():
        raise ValueError(t("validation_no_project"))

    return list(await asyncio.gather(
        *(run_team_analysis(backend, project_text, team, model) for model in models)
    ))


def format_for_display(result: AnalysisResult) -> str:
    if not result.structured:
        return result.content

    s = result.structured
    lines = [
        f"[评分] {s.overall_score}/100  [风险] {s.risk_level}",
        f"[摘要] {s.summary}",
    ]
    if s.expert_insights:
        lines.append("\n[专家观点]")
        icons = {"positive": "▲", "neutral": "●", "negative": "▼"}
        for insight in s.expert_insights:
            lines.append(
                f"  {icons[insight.sentiment]} {insight.expert_name} ({insight.role}) "
                f"{insight.score}: {insight.key_point}"
            )
    return "\n".join(lines)


async def generate_persona(
    backend: CompletionBackend,
    role: ExpertRole,
    custom_prompt: str = "",
    custom_name: Optional[str] = None,
    custom_avatar: Optional[str] = None,
    model: Optional[ModelConfig] = None,
) -> Expert:
    """Ask the model to write a persona; falls back to an editable placeholder."""
    if custom_name:
        content = f'Create persona for "{custom_name}" ({role.value}). {custom_prompt}'
    else:
        content = custom_prompt or f"Create a top-tier {role.value} expert."

    messages = [
        Message(
            role=Role.SYSTEM,
            content=(
                f"You are an expert system designer. Create a detailed persona for a {role.value} expert. "
                'JSON output only: {"name": string, "description": string}.'
            ),
        ),
        Message(role=Role.USER, content=content),
    ]

    expert_id = new_custom_id()
    try:
        data = extract_json(await backend.complete(messages, model, json_mode=True)) or {}
    except BACKEND_ERRORS:
        data = {}

    return Expert(
        id=expert_id,
        name=custom_name or data.get("name") or "New Expert",
        role=role,
        description=data.get("description") or t("persona_fallback"),
        avatar=custom_avatar or avatar_url(expert_id),
        is_custom=True,
    )
