"""
Tests for the stage pipeline view
"""
from types import SimpleNamespace

from content_organiser.models.content_item import ContentPlatform, ContentStage
from content_organiser.planning.pipeline import (STAGES, coerce_stage,
                                                 group_by_stage,
                                                 platform_badge,
                                                 stage_definition)


def _item(item_id, stage):
    return SimpleNamespace(id=item_id, stage=stage)


def test_stages_cover_every_stage_in_order():
    assert [s.key for s in STAGES] == list(ContentStage)
    assert [s.label for s in STAGES] == ["Ideas", "Script", "Shooting", "Editing", "Scheduled", "Posted"]


def test_group_by_stage_one_bucket_per_stage():
    """Each item lands in exactly its own column, source order kept"""
    items = [
        _item("1", ContentStage.EDITING),
        _item("2", "idea"),
        _item("3", ContentStage.EDITING),
    ]

    buckets = group_by_stage(items)

    assert len(buckets) == len(STAGES)
    by_key = {b.stage.key: b for b in buckets}
    assert [i.id for i in by_key[ContentStage.EDITING].items] == ["1", "3"]
    assert [i.id for i in by_key[ContentStage.IDEA].items] == ["2"]
    assert by_key[ContentStage.EDITING].count == 2
    assert by_key[ContentStage.POSTED].is_empty
    assert sum(b.count for b in buckets) == len(items)


def test_unknown_stage_is_skipped():
    buckets = group_by_stage([_item("x", "archived"), _item("y", ContentStage.SCRIPT)])

    assert sum(b.count for b in buckets) == 1
    assert coerce_stage("archived") is None


def test_stage_definition_lookup():
    assert stage_definition("posted").color == "#22c55e"
    assert stage_definition(ContentStage.IDEA).label == "Ideas"
    assert stage_definition("nope") is None


def test_platform_badges():
    assert platform_badge(ContentPlatform.YOUTUBE_SHORTS) == "YTS"
    assert platform_badge("twitter") == "X"
    assert platform_badge("myspace") == "myspace"
