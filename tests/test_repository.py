from datetime import timedelta

import pytest

from app.models.pipeline_run import PipelineRun
from app.services.errors import ConcurrencyConflict, InvalidTransitionError, PipelineError


def test_update_status_is_compare_and_swap(repo, make_content):
    item = make_content(status="review")

    assert repo.update_status(item.id, "review", "approved", approved_by="admin") is True
    # a second writer still believing the item is in review loses
    assert repo.update_status(item.id, "review", "rejected") is False

    fresh = repo.get_content(item.id)
    assert fresh.status == "approved"
    assert fresh.approved_by == "admin"


def test_update_status_unknown_id_is_not_applied(repo):
    assert repo.update_status("missing", "review", "approved") is False


def test_update_status_enforces_state_machine(repo, make_content):
    item = make_content(status="review")
    with pytest.raises(InvalidTransitionError):
        repo.update_status(item.id, "review", "published")
    assert repo.get_content(item.id).status == "review"


def test_update_content_refuses_status(repo, make_content):
    item = make_content()
    with pytest.raises(ValueError):
        repo.update_content(item.id, status="approved")


def test_list_content_filters_and_ordering(repo, clock, make_content):
    low = make_content(confidence=0.5)
    clock.advance(minutes=1)
    high = make_content(confidence=0.9, category="weather")
    clock.advance(minutes=1)
    newest_high = make_content(confidence=0.9)

    by_conf = repo.list_content(order="confidence")
    assert [i.id for i in by_conf] == [newest_high.id, high.id, low.id]

    assert [i.id for i in repo.list_content(category="weather")] == [high.id]
    assert {i.id for i in repo.list_content(min_confidence=0.6)} == {high.id, newest_high.id}
    assert [i.id for i in repo.list_content(max_confidence=0.6)] == [low.id]


def test_collectable_raw_items(repo, make_content):
    keep = repo.add_raw_item(source="rss", title="A", raw_score=0.75, category_hint="transport")
    repo.add_raw_item(source="rss", title="B", raw_score=0.59)
    consumed = repo.add_raw_item(source="rss", title="C", raw_score=0.9)
    make_content(raw_item_id=consumed.id)

    collectable = repo.list_collectable_raw_items(0.6, 10)
    assert [r.id for r in collectable] == [keep.id]


def test_one_content_item_per_raw_item(repo, make_content):
    raw = repo.add_raw_item(source="rss", title="A", raw_score=0.8)
    make_content(raw_item_id=raw.id)
    with pytest.raises(PipelineError):
        make_content(raw_item_id=raw.id)


def test_raw_item_metadata_is_validated(repo):
    raw = repo.add_raw_item(source="rss", title="A", raw_score=0.7, metadata={"tags": ["mhd"], "neighborhood_ids": ["praha2"]})
    meta = repo.raw_metadata(raw)
    assert meta.schema_version == 1
    assert meta.neighborhood_ids == ["praha2"]

    with pytest.raises(ValueError):
        repo.add_raw_item(source="rss", title="B", raw_score=0.7, metadata={"schema_version": 7})
    with pytest.raises(ValueError):
        repo.add_raw_item(source="rss", title="C", raw_score=1.2)


def test_run_lock(repo, db):
    first = repo.start_run("manual", timedelta(minutes=120))
    assert first is not None
    assert repo.start_run("scheduled", timedelta(minutes=120)) is None
    assert db.query(PipelineRun).count() == 1

    repo.finish_run(first.id, "completed")
    assert repo.start_run("scheduled", timedelta(minutes=120)) is not None


def test_stale_running_run_is_failed_and_lock_released(repo, clock):
    stuck = repo.start_run("manual", timedelta(minutes=120))
    clock.advance(hours=3)

    fresh = repo.start_run("scheduled", timedelta(minutes=120))
    assert fresh is not None
    old = repo.get_run(stuck.id)
    assert old.status == "failed"
    assert "stale" in old.error_message


def test_publish_content_is_idempotent_per_neighborhood(repo, neighborhoods, make_content):
    item = make_content(status="approved")

    created = repo.publish_content(item.id, "approved", ["praha2", "praha4"], category="transport")
    assert {r.neighborhood_id for r in created} == {"praha2", "praha4"}

    again = repo.publish_content(item.id, "published", ["praha2", "praha4", "praha6"], category="transport")
    assert [r.neighborhood_id for r in again] == ["praha6"]
    assert len(repo.list_publications(item.id)) == 3


def test_publish_content_requires_expected_status(repo, neighborhoods, make_content):
    item = make_content(status="approved")
    repo.update_status(item.id, "approved", "archived")

    # stale caller still believes the item is approved
    with pytest.raises(ConcurrencyConflict):
        repo.publish_content(item.id, "approved", ["praha2"], category="transport")
    assert repo.list_publications(item.id) == []


def test_edit_history_is_appended(repo, clock, make_content):
    item = make_content()
    repo.add_edit_history(item.id, {"title": {"from": "a", "to": "b"}}, override_reason="typo")
    clock.advance(minutes=5)
    repo.add_edit_history(item.id, {"body": {"from": "x", "to": "y"}})
    history = repo.list_edit_history(item.id)
    assert [h.override_reason for h in history] == ["typo", None]


def test_collectable_raw_items_filter_categories_before_limit(repo):
    repo.add_raw_item(source="rss", title="Koncert", raw_score=0.95, category_hint="culture")
    repo.add_raw_item(source="rss", title="Bez kategorie", raw_score=0.9)
    transport = repo.add_raw_item(source="rss", title="Výluka", raw_score=0.7, category_hint="transport")

    assert [r.id for r in repo.list_collectable_raw_items(0.6, 1, categories=("transport",))] == [transport.id]
    # a missing hint is treated as "other"
    assert len(repo.list_collectable_raw_items(0.6, 10, categories=("transport", "other"))) == 2


def test_update_fields_requires_expected_status(repo, make_content):
    item = make_content(status="review", confidence=0.5)

    assert repo.update_fields(item.id, "approved", confidence=0.9) is False
    assert repo.get_content(item.id).confidence == 0.5

    assert repo.update_fields(item.id, "review", confidence=0.7, validation_notes="ok") is True
    fresh = repo.get_content(item.id)
    assert (fresh.status, fresh.confidence, fresh.validation_notes) == ("review", 0.7, "ok")

    with pytest.raises(ValueError):
        repo.update_fields(item.id, "review", status="approved")


def test_stop_can_only_be_requested_for_running_run(repo):
    run = repo.start_run("manual", timedelta(minutes=120))
    assert repo.is_stop_requested(run.id) is False

    assert repo.request_stop(run.id) is True
    assert repo.is_stop_requested(run.id) is True

    repo.finish_run(run.id, "failed")
    assert repo.request_stop(run.id) is False
    assert repo.request_stop("missing") is False
