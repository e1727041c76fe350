import json

import pytest

from icdhelper.discovery.merge import merge_manifests
from icdhelper.exceptions import IndexOutOfRange, StoreIO, UnknownDriver
from icdhelper.output.state import (
    SelectionState,
    SelectionStore,
    compare_entries,
    index_entries,
    reconcile,
    select,
    select_index,
)

SYS = "/usr/share/vulkan/icd.d"


def entries_for(*names):
    return merge_manifests([f"{SYS}/{name}" for name in names])


@pytest.fixture
def store(tmp_path):
    return SelectionStore(tmp_path / "ICDHlpr" / "config.json")


def test_reconcile_assigns_positional_indices():
    fresh = entries_for("intel_icd.x86_64.json", "radeon_icd.x86_64.json")

    state, changed = reconcile(fresh, SelectionState())

    assert changed
    assert [(e.index, e.display_name) for e in state.entries] == [
        (0, "intel_icd.(x86_64)"),
        (1, "radeon_icd.(x86_64)"),
    ]


def test_reconcile_save_load_roundtrip_is_unchanged(store):
    fresh = entries_for("radeon_icd.i686.json", "radeon_icd.x86_64.json", "intel_icd.x86_64.json")

    state, _ = reconcile(fresh, store.load())
    store.save(state)
    again, changed = reconcile(fresh, store.load())

    assert changed is False
    assert again.entries == state.entries


def test_reconcile_detects_removed_architecture():
    cached, _ = reconcile(entries_for("A32.json", "A64.json"), SelectionState())

    _, changed = reconcile(entries_for("A64.json"), cached)

    assert changed is True


def test_reconcile_keeps_current_selection():
    previous = SelectionState(current="radeon_icd.(x86_64)")
    state, _ = reconcile(entries_for("radeon_icd.x86_64.json"), previous)
    assert state.current == "radeon_icd.(x86_64)"


def test_new_earlier_driver_shifts_indices():
    before, _ = reconcile(entries_for("intel_icd.x86_64.json", "radeon_icd.x86_64.json"), SelectionState())
    before = select_index(before, 1)

    after, changed = reconcile(
        entries_for("amd_icd64.json", "intel_icd.x86_64.json", "radeon_icd.x86_64.json"),
        before,
    )

    assert changed
    assert after.entries[1].display_name == "intel_icd.(x86_64)"
    assert after.entries[2].display_name == "radeon_icd.(x86_64)"
    # selection follows the driver, not the position
    assert after.current == "radeon_icd.(x86_64)"
    assert after.find(after.current).index == 2


def test_select_index_bounds():
    state = SelectionState(entries=index_entries(entries_for("A64.json", "B64.json", "C64.json")))

    with pytest.raises(IndexOutOfRange):
        select_index(state, len(state.entries))
    with pytest.raises(IndexOutOfRange):
        select_index(state, -1)

    selected = select_index(state, len(state.entries) - 1)
    assert selected.current == "C(64)"


def test_select_index_on_empty_listing():
    with pytest.raises(IndexOutOfRange):
        select_index(SelectionState(), 0)


def test_select_unknown_name():
    state = SelectionState(entries=index_entries(entries_for("A64.json")))
    with pytest.raises(UnknownDriver):
        select(state, "B(64)")


def test_compare_entries_reports_changes():
    old = index_entries(entries_for("intel_icd.x86_64.json", "lvp_icd.x86_64.json"))
    new = index_entries(entries_for("amd_icd64.json", "intel_icd.x86_64.json"))

    diff = compare_entries(old, new)

    assert diff["added"] == ["amd_icd(64)"]
    assert diff["removed"] == ["lvp_icd.(x86_64)"]
    assert diff["moved"] == [{"name": "intel_icd.(x86_64)", "before": 0, "after": 1}]


def test_load_creates_empty_store(store):
    state = store.load()

    assert state == SelectionState()
    assert json.loads(store.path.read_text()) == {}


def test_load_empty_file(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("")
    assert store.load() == SelectionState()


def test_save_writes_wire_format(store):
    state, _ = reconcile(entries_for("radeon_icd.i686.json", "radeon_icd.x86_64.json"), SelectionState())
    state = select_index(state, 0)

    store.save(state)

    assert json.loads(store.path.read_text()) == {
        "ICDs": [
            [0, ["radeon_icd.(i686,x86_64)", [f"{SYS}/radeon_icd.i686.json", f"{SYS}/radeon_icd.x86_64.json"]]],
        ],
        "current": "radeon_icd.(i686,x86_64)",
    }
    assert not list(store.path.parent.glob("*.tmp"))


def test_load_ignores_integer_selection(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"ICDs": [[0, ["A(64)", [f"{SYS}/A64.json"]]]], "current": 0}))

    state = store.load()

    assert state.current is None
    assert state.entries[0].display_name == "A(64)"


@pytest.mark.parametrize("content", [
    "{not json",
    "[]",
    json.dumps({"ICDs": [[0, "A(64)"]]}),
    json.dumps({"ICDs": [["0", ["A(64)", ["/a/A64.json"]]]]}),
    json.dumps({"ICDs": [[0, ["A(64)", []]]]}),
])
def test_load_rejects_malformed_store(store, content):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(content)
    with pytest.raises(StoreIO):
        store.load()


def test_load_rejects_non_utf8_store(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_bytes(b'{"current": "\xff"}')
    with pytest.raises(StoreIO, match="Invalid store"):
        store.load()


def test_save_failure_raises_store_io(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    store = SelectionStore(blocker / "config.json")

    with pytest.raises(StoreIO):
        store.save(SelectionState())
