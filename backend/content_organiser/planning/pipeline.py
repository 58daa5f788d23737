"""
Stage pipeline view: groups items into one kanban column per stage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from content_organiser.models.content_item import ContentPlatform, ContentStage


@dataclass(frozen=True)
class StageDefinition:
    key: ContentStage
    label: str
    color: str


STAGES: Tuple[StageDefinition, ...] = (
    StageDefinition(ContentStage.IDEA, "Ideas", "#f59e0b"),
    StageDefinition(ContentStage.SCRIPT, "Script", "#3b82f6"),
    StageDefinition(ContentStage.SHOOTING, "Shooting", "#ec4899"),
    StageDefinition(ContentStage.EDITING, "Editing", "#6366f1"),
    StageDefinition(ContentStage.SCHEDULED, "Scheduled", "#10b981"),
    StageDefinition(ContentStage.POSTED, "Posted", "#22c55e"),
)

STAGE_BY_KEY: Dict[ContentStage, StageDefinition] = {s.key: s for s in STAGES}

PLATFORM_BADGES: Dict[ContentPlatform, str] = {
    ContentPlatform.INSTAGRAM: "IG",
    ContentPlatform.YOUTUBE: "YT",
    ContentPlatform.YOUTUBE_SHORTS: "YTS",
    ContentPlatform.TIKTOK: "TT",
    ContentPlatform.PODCAST: "POD",
    ContentPlatform.TWITTER: "X",
    ContentPlatform.LINKEDIN: "LI",
    ContentPlatform.OTHER: "OTH",
}


@dataclass(frozen=True)
class StageBucket:
    stage: StageDefinition
    items: Tuple

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


def coerce_stage(value) -> Optional[ContentStage]:
    """Known stage for a raw value, or None for anything outside the pipeline."""
    if isinstance(value, ContentStage):
        return value
    try:
        return ContentStage(value)
    except ValueError:
        return None


def stage_definition(value) -> Optional[StageDefinition]:
    stage = coerce_stage(value)
    return STAGE_BY_KEY.get(stage) if stage is not None else None


def group_by_stage(items: Iterable) -> List[StageBucket]:
    """One bucket per known stage, in pipeline order.

    Source order is kept inside each bucket. Items with an unknown stage
    land in no bucket.
    """
    grouped: Dict[ContentStage, List] = {s.key: [] for s in STAGES}
    for item in items:
        stage = coerce_stage(item.stage)
        if stage is None:
            continue
        grouped[stage].append(item)
    return [StageBucket(stage=s, items=tuple(grouped[s.key])) for s in STAGES]


def platform_badge(value) -> str:
    try:
        return PLATFORM_BADGES[ContentPlatform(value)]
    except ValueError:
        return str(value)
