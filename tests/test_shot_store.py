# tests/test_shot_store.py
import json
import threading

from providers.storage.shot_store import ShotStore
from schemas.shot import ShotStatus


def test_get_all_returns_empty_when_file_missing(store):
    assert store.get_all() == []
    # 第一次读取时创建数据目录
    assert store.path.parent.is_dir()


def test_get_all_returns_empty_on_invalid_json(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("invalid json", encoding="utf-8")
    assert store.get_all() == []


def test_get_all_returns_empty_when_document_is_not_an_array(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text('{"id": "shot_1"}', encoding="utf-8")
    assert store.get_all() == []


def test_unknown_status_normalizes_on_load(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps([{"id": "shot_1", "title": "A", "status": "bogus"}]), encoding="utf-8")
    [shot] = store.get_all()
    assert shot.status == ShotStatus.NOT_GENERATED
    assert shot.video_url == ""


def test_one_invalid_record_does_not_hide_the_rest(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps([
        {"id": "shot_0", "title": "Kept"},
        {"title": "no id"},
        "not an object",
        {"id": "shot_2", "title": "Also kept"},
    ]), encoding="utf-8")

    assert [s.id for s in store.get_all()] == ["shot_0", "shot_2"]


def test_numeric_scalars_are_read_as_strings(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps([{"id": 7, "title": 2024}]), encoding="utf-8")

    [shot] = store.get_all()
    assert (shot.id, shot.title) == ("7", "2024")


def test_replace_all_writes_pretty_printed_array(store, make_shot):
    shots = [make_shot(id="shot_1", video_url="https://example.com/v.mp4")]
    result = store.replace_all(shots)

    assert result
    assert result.ok is True
    text = store.path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    data = json.loads(text)
    assert data[0]["videoUrl"] == "https://example.com/v.mp4"
    assert data[0]["status"] == "prompt not yet generated"
    assert store.get_all() == shots


def test_replace_all_returns_failure_instead_of_raising(tmp_path, make_shot):
    target = tmp_path / "shots.json"
    target.mkdir()  # a directory where the document should be
    result = ShotStore(target).replace_all([make_shot()])

    assert not result
    assert result.error is not None
    assert [p.name for p in tmp_path.iterdir()] == ["shots.json"]


def test_update_merges_patch_onto_matching_record_only(store, make_shot):
    store.replace_all([make_shot(id="shot_1", title="Original Title"), make_shot(id="shot_2", title="Other")])

    result = store.update("shot_1", {"title": "Updated Title", "status": ShotStatus.SELECTED})

    assert result and result.matched == 1
    first, second = store.get_all()
    assert first.title == "Updated Title"
    assert first.status == ShotStatus.SELECTED
    assert first.description == "Test description"
    assert second.title == "Other"


def test_update_unknown_id_still_reports_success(store, make_shot):
    store.replace_all([make_shot(id="shot_2")])
    before = store.get_all()

    result = store.update("shot_1", {"status": "shot selected"})

    assert result.ok is True
    assert result.matched == 0
    assert store.get_all() == before


def test_update_with_invalid_patch_fails_and_keeps_document(store, make_shot):
    store.replace_all([make_shot(id="shot_1", title="Original")])

    result = store.update("shot_1", {"title": ["not", "a", "string"]})

    assert not result
    assert result.matched == 1
    assert result.error is not None
    assert store.get_all()[0].title == "Original"


def test_add_appends_without_duplicate_check(store, make_shot):
    store.add(make_shot(id="shot_1", title="First"))
    store.add(make_shot(id="shot_1", title="Duplicate"))

    assert [s.title for s in store.get_all()] == ["First", "Duplicate"]


def test_remove_preserves_order_of_remaining_records(store, make_shot):
    store.replace_all([make_shot(id=f"shot_{i}") for i in range(1, 5)])

    result = store.remove("shot_2")

    assert result and result.matched == 1
    assert [s.id for s in store.get_all()] == ["shot_1", "shot_3", "shot_4"]


def test_remove_unknown_id_succeeds(store, make_shot):
    store.replace_all([make_shot(id="shot_1")])
    result = store.remove("missing")
    assert result.ok is True
    assert result.matched == 0
    assert len(store.get_all()) == 1


def test_separate_instances_lose_interleaved_writes(store, make_shot):
    # read A, read B, write A, write B -> B silently discards A's change
    store.replace_all([make_shot(id="shot_1", title="Base")])
    other = ShotStore(store.path)

    seen_by_a = store.get_all()
    seen_by_b = other.get_all()
    seen_by_a.append(make_shot(id="shot_a"))
    store.replace_all(seen_by_a)
    seen_by_b.append(make_shot(id="shot_b"))
    other.replace_all(seen_by_b)

    assert [s.id for s in store.get_all()] == ["shot_1", "shot_b"]


def test_concurrent_adds_on_one_instance_are_serialized(store, make_shot):
    threads = [threading.Thread(target=store.add, args=(make_shot(id=f"shot_{i}"),)) for i in range(25)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(s.id for s in store.get_all()) == sorted(f"shot_{i}" for i in range(25))
