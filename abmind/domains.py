"""
Domain categorization.

Every course/resource is tagged with zero or more topical domains by plain
keyword matching:

    haystack = lower(title + summary/description + tags)
    domain matches if ANY of its keywords is a substring of the haystack

No tokenization and no stemming: a keyword hidden inside an unrelated word
still counts. Keywords are bilingual (English + Chinese).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Sequence, Tuple, TypeVar, Union

from abmind.model import Course, Resource

Domain = Literal["urban", "environmental", "transportation", "social", "economics", "computational"]

Item = Union[Course, Resource]
ItemT = TypeVar("ItemT", Course, Resource)


@dataclass(frozen=True)
class DomainInfo:
    id: Domain
    label: str
    description: str
    tools: Tuple[str, ...]
    methodologies: Tuple[str, ...]
    keywords: Tuple[str, ...]


# ---------------------------------------------------------------------------
# Static configuration
# ---------------------------------------------------------------------------

DOMAIN_CONFIG: Dict[Domain, DomainInfo] = {
    "urban": DomainInfo(
        id="urban",
        label="城市建模",
        description="城市规划、交通流、人口动态等城市系统建模",
        tools=("SUMO", "GTFS", "OpenStreetMap", "PostGIS", "QGIS"),
        methodologies=("空间分析", "网络分析", "人口流动建模", "土地利用建模"),
        keywords=("urban", "city", "planning", "transportation", "spatial", "gis", "城市", "规划", "交通", "空间"),
    ),
    "environmental": DomainInfo(
        id="environmental",
        label="环境建模",
        description="生态系统、气候变化、环境保护等环境科学建模",
        tools=("NetLogo", "R", "GDAL", "Climate Data", "Satellite Imagery"),
        methodologies=("生态系统建模", "气候模拟", "环境影响评估", "生物多样性分析"),
        keywords=("environment", "ecology", "climate", "ecosystem", "biodiversity", "环境", "生态", "气候", "生物"),
    ),
    "transportation": DomainInfo(
        id="transportation",
        label="交通建模",
        description="交通流量、物流网络、出行行为等交通系统建模",
        tools=("SUMO", "GTFS", "OpenStreetMap", "Traffic Simulators", "GPS Data"),
        methodologies=("交通流建模", "路径规划", "出行需求分析", "物流优化"),
        keywords=("transport", "traffic", "mobility", "logistics", "routing", "交通", "出行", "物流", "路径"),
    ),
    "social": DomainInfo(
        id="social",
        label="社会建模",
        description="社会网络、群体行为、文化传播等社会科学建模",
        tools=("NetworkX", "Gephi", "Social Media APIs", "Survey Data", "Census Data"),
        methodologies=("社会网络分析", "群体动力学", "信息传播", "行为建模"),
        keywords=("social", "network", "behavior", "culture", "community", "社会", "网络", "行为", "文化", "群体"),
    ),
    "economics": DomainInfo(
        id="economics",
        label="经济建模",
        description="市场动态、经济政策、金融系统等经济学建模",
        tools=("Financial APIs", "Economic Databases", "Statistical Software", "Market Data"),
        methodologies=("市场建模", "政策分析", "金融风险评估", "经济预测"),
        keywords=("economics", "market", "finance", "policy", "trade", "经济", "市场", "金融", "政策", "贸易"),
    ),
    "computational": DomainInfo(
        id="computational",
        label="计算建模",
        description="算法优化、并行计算、模型验证等计算科学方法",
        tools=("HPC Clusters", "GPU Computing", "Profiling Tools", "Version Control"),
        methodologies=("并行计算", "算法优化", "模型验证", "性能分析"),
        keywords=(
            "computation",
            "algorithm",
            "optimization",
            "parallel",
            "performance",
            "计算",
            "算法",
            "优化",
            "并行",
            "性能",
        ),
    ),
}

ALL_DOMAINS: Tuple[Domain, ...] = tuple(DOMAIN_CONFIG)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def _haystack(item: Item) -> str:
    body = item.summary if isinstance(item, Course) else item.description
    return f"{item.title} {body} {' '.join(item.tags)}".lower()


def detect_domains(item: Item) -> List[Domain]:
    """
    Domains whose keywords occur in the item's text, in configuration order.
    """
    text = _haystack(item)
    return [
        info.id
        for info in DOMAIN_CONFIG.values()
        if any(keyword.lower() in text for keyword in info.keywords)
    ]


detect_course_domains = detect_domains
detect_resource_domains = detect_domains


def filter_by_domains(items: Sequence[ItemT], selected: Iterable[str]) -> List[ItemT]:
    """
    Keep items tagged with at least one of the selected domains.
    """
    wanted = set(selected)
    if not wanted:
        return list(items)
    return [item for item in items if wanted.intersection(detect_domains(item))]


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass
class DomainCount:
    courses: int = 0
    resources: int = 0

    @property
    def total(self) -> int:
        return self.courses + self.resources


def get_domain_statistics(courses: Iterable[Course], resources: Iterable[Resource]) -> Dict[Domain, DomainCount]:
    stats: Dict[Domain, DomainCount] = {domain: DomainCount() for domain in ALL_DOMAINS}
    for course in courses:
        for domain in detect_domains(course):
            stats[domain].courses += 1
    for resource in resources:
        for domain in detect_domains(resource):
            stats[domain].resources += 1
    return stats


@dataclass
class RelatedCourse:
    course: Course
    shared_domains: List[Domain]


@dataclass
class CrossDomainRelationship:
    course: Course
    domains: List[Domain]
    related_courses: List[RelatedCourse]


def find_cross_domain_relationships(courses: Sequence[Course], limit: int = 5) -> List[CrossDomainRelationship]:
    """
    For every categorized course, list up to `limit` other courses sharing a domain.
    """
    detected = [(course, detect_domains(course)) for course in courses]
    relationships: List[CrossDomainRelationship] = []

    for course, domains in detected:
        if not domains:
            continue
        related: List[RelatedCourse] = []
        for other, other_domains in detected:
            if other.id == course.id:
                continue
            shared = [d for d in domains if d in other_domains]
            if shared:
                related.append(RelatedCourse(course=other, shared_domains=shared))
        relationships.append(CrossDomainRelationship(course=course, domains=domains, related_courses=related[:limit]))

    return relationships


@dataclass
class LearningPhase:
    phase: str
    description: str
    courses: List[Course]
    domains: List[Domain]


def get_recommended_learning_sequence(target_domains: Sequence[Domain], courses: Sequence[Course]) -> List[LearningPhase]:
    """
    Split courses into foundation -> specialization -> advanced phases.

    - foundation: beginner courses that are computational or uncategorized
    - specialization: intermediate courses in one of the target domains
    - advanced: advanced courses in a target domain or spanning several domains
    """
    targets = list(target_domains)
    detected = [(course, detect_domains(course)) for course in courses]
    sequence: List[LearningPhase] = []

    foundation = [
        c for c, ds in detected if c.difficulty == "beginner" and ("computational" in ds or not ds)
    ]
    if foundation:
        sequence.append(LearningPhase("基础阶段", "ABM基础概念和编程技能", foundation, ["computational"]))

    specialization = [
        c for c, ds in detected if c.difficulty == "intermediate" and any(d in targets for d in ds)
    ]
    if specialization:
        sequence.append(LearningPhase("专业阶段", "特定领域的ABM应用", specialization, targets))

    advanced = [
        c for c, ds in detected if c.difficulty == "advanced" and (any(d in targets for d in ds) or len(ds) > 1)
    ]
    if advanced:
        sequence.append(LearningPhase("高级阶段", "高级技术和跨领域应用", advanced, targets))

    return sequence


def get_domain_specific_info(domains: Iterable[str]) -> Dict[str, List[str]]:
    """
    Union of tools and methodologies for the given domains (unknown ids ignored).
    """
    tools: List[str] = []
    methodologies: List[str] = []
    for domain in domains:
        info = DOMAIN_CONFIG.get(domain)  # type: ignore[call-overload]
        if info is None:
            continue
        for tool in info.tools:
            if tool not in tools:
                tools.append(tool)
        for method in info.methodologies:
            if method not in methodologies:
                methodologies.append(method)
    return {"tools": tools, "methodologies": methodologies}
