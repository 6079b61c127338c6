import pytest
from sqlalchemy import text

from app.services.batch import (
    APPROVE,
    APPROVE_BY_CONFIDENCE,
    ARCHIVE,
    REJECT,
    REPUBLISH,
    BatchOptions,
    BatchSelector,
)
from app.utils.constants import ORIGIN_FALLBACK


def test_threshold_mode_never_approves_below_threshold(batch, repo, neighborhoods, make_content):
    high = make_content(confidence=0.92)
    edge = make_content(confidence=0.85, status="generated")
    low = make_content(confidence=0.84)

    result = batch.run_batch_action(APPROVE_BY_CONFIDENCE, BatchSelector(threshold=0.85))

    assert {r.id for r in result.items} == {high.id, edge.id}
    assert result.succeeded == 2
    assert repo.get_content(low.id).status == "review"
    for r in result.items:
        assert repo.get_content(r.id).confidence >= 0.85
        assert r.new_status == "published"


def test_threshold_mode_uses_config_default(batch, config, neighborhoods, make_content):
    make_content(confidence=config.batch_default_threshold - 0.01)
    result = batch.run_batch_action(APPROVE_BY_CONFIDENCE, BatchSelector())
    assert result.processed == 0


def test_explicit_approve_reports_each_item(batch, repo, neighborhoods, make_content):
    high = make_content(confidence=0.9)
    low = make_content(confidence=0.5)

    result = batch.run_batch_action(
        APPROVE,
        BatchSelector(ids=[high.id, low.id, "missing"]),
        BatchOptions(min_confidence=0.85, actor="editor"),
    )

    assert [r.success for r in result.items] == [True, False, False]
    assert [r.error for r in result.items] == [None, "low confidence", "not found"]
    assert result.items[1].new_status == "review"
    assert result.items[2].old_status is None
    assert result.processed == 3
    assert result.failed == 2

    approved = repo.get_content(high.id)
    assert approved.status == "published"
    assert approved.approved_by == "editor"
    assert len(repo.list_publications(high.id)) == 4


def test_duplicate_ids_processed_once(batch, neighborhoods, make_content):
    item = make_content()
    result = batch.run_batch_action(APPROVE, BatchSelector(ids=[item.id, item.id]))
    assert result.processed == 1


def test_explicit_action_requires_ids(batch):
    with pytest.raises(ValueError):
        batch.run_batch_action(REJECT, BatchSelector())


def test_unknown_action(batch):
    with pytest.raises(ValueError):
        batch.run_batch_action("delete", BatchSelector(ids=["x"]))


def test_dry_run_changes_nothing(batch, repo, neighborhoods, make_content):
    item = make_content(confidence=0.95)

    result = batch.run_batch_action(APPROVE_BY_CONFIDENCE, BatchSelector(threshold=0.9), BatchOptions(dry_run=True))

    assert result.dry_run is True
    assert result.items[0].success is True
    assert result.items[0].applied is False
    assert result.items[0].new_status == "published"
    assert repo.get_content(item.id).status == "review"
    assert repo.list_publications(item.id) == []


def test_reject_stores_reason(batch, repo, make_content):
    item = make_content()
    result = batch.run_batch_action(REJECT, BatchSelector(ids=[item.id]), BatchOptions(reason="duplicate story"))

    assert result.items[0].new_status == "rejected"
    rejected = repo.get_content(item.id)
    assert rejected.status == "rejected"
    assert rejected.rejection_reason == "duplicate story"
    assert rejected.rejected_at is not None


def test_terminal_items_cannot_be_archived(batch, make_content):
    item = make_content(status="rejected")
    result = batch.run_batch_action(ARCHIVE, BatchSelector(ids=[item.id]))

    r = result.items[0]
    assert r.success is False
    assert r.error == "Invalid transition: rejected -> archived"
    assert r.new_status == "rejected"


def test_republish_adds_override_neighborhood(batch, fanout, repo, neighborhoods, make_content):
    item = make_content(status="approved", category="culture")
    fanout.publish(item.id)

    result = batch.run_batch_action(REPUBLISH, BatchSelector(ids=[item.id]), BatchOptions(neighborhood_id="praha9"))

    assert result.items[0].success is True
    assert sorted(p.neighborhood_id for p in repo.list_publications(item.id)) == ["praha2", "praha4", "praha6", "praha9"]


def test_republish_requires_published(batch, make_content):
    item = make_content(status="approved")
    result = batch.run_batch_action(REPUBLISH, BatchSelector(ids=[item.id]))
    assert result.items[0].success is False


def test_fallback_content_is_never_auto_selected(batch, neighborhoods, make_content):
    make_content(confidence=0.6, origin=ORIGIN_FALLBACK)
    result = batch.run_batch_action(APPROVE_BY_CONFIDENCE, BatchSelector(threshold=0.5))
    assert result.processed == 0


def test_lost_race_is_reported_as_concurrent_update(batch, repo, neighborhoods, make_content, monkeypatch):
    item = make_content()

    def racing_update(content_id, expected, new, **fields):
        # someone else rejected it between our read and our write
        repo.db.execute(text("UPDATE content_items SET status = 'rejected' WHERE id = :id"), {"id": content_id})
        repo.db.commit()
        return False

    monkeypatch.setattr(repo, "update_status", racing_update)
    result = batch.run_batch_action(APPROVE, BatchSelector(ids=[item.id]))

    r = result.items[0]
    assert r.success is False
    assert r.error == "concurrent update"
    assert r.new_status == "rejected"
