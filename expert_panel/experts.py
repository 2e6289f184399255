"""
Expert persona definitions and team membership.
Each expert is a named persona whose description conditions the model's answers.
"""

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional


class ExpertRole(Enum):
    BUSINESS = "商业咨询"
    FINANCE = "财务融资"
    VENTURE = "风险投资"
    OPERATIONS = "运营操盘"
    LEGAL = "法律合规"
    TECHNOLOGY = "技术开发"
    ENGINEERING = "工程建设"
    MARKETING = "市场营销"
    CUSTOM = "自定义"

    @classmethod
    def parse(cls, value: str) -> "ExpertRole":
        for role in cls:
            if value in (role.value, role.name, role.name.lower()):
                return role
        return cls.CUSTOM


@dataclass(frozen=True)
class Expert:
    id: str
    name: str
    role: ExpertRole
    description: str
    avatar: str = ""
    is_custom: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Expert":
        return cls(
            id=data["id"],
            name=data["name"],
            role=ExpertRole.parse(data.get("role", "")),
            description=data.get("description", ""),
            avatar=data.get("avatar", ""),
            is_custom=data.get("is_custom", False),
        )


def avatar_url(seed: str) -> str:
    return f"https://picsum.photos/seed/{seed}/100/100"


def new_custom_id() -> str:
    return f"custom_{time.time_ns()}"


DEFAULT_EXPERTS: list[Expert] = [
    Expert(
        id="exp_1",
        name="Sarah Chen",
        role=ExpertRole.VENTURE,
        avatar=avatar_url("sarah"),
        description=(
            "硅谷从业 15 年的风险投资人。关注可扩展性、总潜在市场(TAM)和单位经济模型，"
            "能很快找出商业模式里的漏洞，说话直接。"
        ),
    ),
    Expert(
        id="exp_2",
        name="Marcus Thorne",
        role=ExpertRole.LEGAL,
        avatar=avatar_url("marcus"),
        description=(
            "专做并购与知识产权的公司律师，风险厌恶。重点排查监管陷阱、合规隐患和合同漏洞。"
        ),
    ),
    Expert(
        id="exp_3",
        name="Dr. Elena Vosk",
        role=ExpertRole.TECHNOLOGY,
        avatar=avatar_url("elena"),
        description=(
            "前大型科技公司 CTO，关注系统架构、技术债和可扩展性。不信热词，只看工程可行性。"
        ),
    ),
    Expert(
        id="exp_4",
        name="James Sterling",
        role=ExpertRole.BUSINESS,
        avatar=avatar_url("james"),
        description=(
            "顶级咨询公司的战略顾问，关注竞争优势、护城河和上市策略(GTM)，"
            "对模糊的价值主张毫不留情。"
        ),
    ),
    Expert(
        id="exp_5",
        name="Linda Wu",
        role=ExpertRole.FINANCE,
        avatar=avatar_url("linda"),
        description=(
            "操盘过 IPO 的 CFO，关注现金流、烧钱速度和财务预测，"
            "反感没有数据支撑的曲棍球棒式增长曲线。"
        ),
    ),
    Expert(
        id="exp_6",
        name="老罗 (Bob)",
        role=ExpertRole.ENGINEERING,
        avatar=avatar_url("bob"),
        description=(
            "土木工程与工业建设领域的老兵，关注物流、材料成本、安全法规和工期管理，实干派。"
        ),
    ),
]


@dataclass
class Team:
    """Ordered set of experts, unique by id."""

    members: list[Expert] = field(default_factory=list)

    def __post_init__(self):
        unique: list[Expert] = []
        seen: set[str] = set()
        for expert in self.members:
            if expert.id not in seen:
                seen.add(expert.id)
                unique.append(expert)
        self.members = unique

    def __iter__(self) -> Iterator[Expert]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, expert_id: object) -> bool:
        return any(e.id == expert_id for e in self.members)

    def add(self, expert: Expert) -> bool:
        if expert.id in self:
            return False
        self.members.append(expert)
        return True

    def remove(self, expert_id: str) -> bool:
        before = len(self.members)
        self.members = [e for e in self.members if e.id != expert_id]
        return len(self.members) != before

    def replace(self, expert: Expert) -> bool:
        for index, member in enumerate(self.members):
            if member.id == expert.id:
                self.members[index] = expert
                return True
        return False

    def get(self, expert_id: str) -> Optional[Expert]:
        for expert in self.members:
            if expert.id == expert_id:
                return expert
        return None

    def find_by_name(self, partial: str) -> Optional[Expert]:
        """First member whose name contains ``partial``, ignoring case."""
        needle = partial.strip().lower()
        if not needle:
            return None
        for expert in self.members:
            if needle in expert.name.lower():
                return expert
        return None

    def teammates_of(self, expert_id: str) -> list[Expert]:
        return [e for e in self.members if e.id != expert_id]

    def select(self, expert_ids: Iterable[str]) -> list[Expert]:
        wanted = set(expert_ids)
        return [e for e in self.members if e.id in wanted]

    def snapshot(self) -> "Team":
        return Team(members=list(self.members))
