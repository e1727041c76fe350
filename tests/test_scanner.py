
from pathlib import Path

import pytest

from icdhelper.exceptions import DirectoryNotFound, DirectoryUnreadable
from icdhelper.scanners.manifests import scan, scan_root


def test_scan_root_lists_only_json_files(system_root, make_manifests):
    make_manifests(system_root, ["radeon_icd.x86_64.json", "intel_icd.x86_64.json"])
    (system_root / "README").write_text("not a manifest")
    (system_root / "old.json.bak").write_text("{}")
    (system_root / "nested.json").mkdir()
    make_manifests(system_root / "sub", ["hidden_icd.x86_64.json"])

    found = scan_root(system_root)

    assert [p.name for p in found] == ["intel_icd.x86_64.json", "radeon_icd.x86_64.json"]
    assert all(p.is_absolute() for p in found)


def test_scan_root_missing_directory(tmp_path):
    with pytest.raises(DirectoryNotFound) as exc:
        scan_root(tmp_path / "missing")
    assert exc.value.path == tmp_path / "missing"


def test_scan_missing_system_root_is_fatal(tmp_path, user_root, make_manifests):
    make_manifests(user_root, ["lvp_icd.x86_64.json"])
    with pytest.raises(DirectoryNotFound):
        scan(tmp_path / "nope", user_root)


def test_scan_missing_user_root_is_warning(system_root, user_root, make_manifests):
    make_manifests(system_root, ["intel_icd.x86_64.json"])

    result = scan(system_root, user_root)

    assert [p.name for p in result.paths] == ["intel_icd.x86_64.json"]
    assert result.user_paths == []
    assert len(result.warnings) == 1
    assert str(user_root) in result.warnings[0]


def test_scan_orders_system_before_user(system_root, user_root, make_manifests):
    make_manifests(system_root, ["zink_icd.x86_64.json"])
    make_manifests(user_root, ["amd_icd64.json"])

    result = scan(system_root, user_root)

    assert [p.name for p in result.paths] == ["zink_icd.x86_64.json", "amd_icd64.json"]
    assert result.roots == (system_root, user_root)
    assert result.warnings == []


def deny_listing(monkeypatch, root):
    original = Path.iterdir

    def iterdir(self):
        if self == root:
            raise PermissionError(13, "Permission denied", str(self))
        return original(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)


def test_scan_root_unreadable_directory(monkeypatch, system_root):
    deny_listing(monkeypatch, system_root)

    with pytest.raises(DirectoryUnreadable) as exc:
        scan_root(system_root)
    assert exc.value.path == system_root
    assert "Permission denied" in str(exc.value)


def test_scan_unreadable_system_root_is_fatal(monkeypatch, system_root, user_root, make_manifests):
    make_manifests(user_root, ["lvp_icd.x86_64.json"])
    deny_listing(monkeypatch, system_root)

    with pytest.raises(DirectoryUnreadable):
        scan(system_root, user_root)


def test_scan_unreadable_user_root_is_warning(monkeypatch, system_root, user_root, make_manifests):
    make_manifests(system_root, ["intel_icd.x86_64.json"])
    make_manifests(user_root, ["lvp_icd.x86_64.json"])
    deny_listing(monkeypatch, user_root)

    result = scan(system_root, user_root)

    assert [p.name for p in result.paths] == ["intel_icd.x86_64.json"]
    assert len(result.warnings) == 1
    assert "User ICDs will not be listed" in result.warnings[0]
