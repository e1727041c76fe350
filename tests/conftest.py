from pathlib import Path

import pytest

from icdhelper.config.settings import Settings


def write_manifests(directory, names):
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        path = directory / name
        path.write_text('{"file_format_version": "1.0.0", "ICD": {"library_path": "lib.so"}}')
        paths.append(path)
    return paths


@pytest.fixture
def system_root(tmp_path):
    root = tmp_path / "usr" / "share" / "vulkan" / "icd.d"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def user_root(tmp_path):
    return tmp_path / "home" / ".local" / "share" / "vulkan" / "icd.d"


@pytest.fixture
def settings(tmp_path, system_root, user_root):
    return Settings(
        home=tmp_path / "home",
        system_root=system_root,
        user_root=user_root,
        config_dir=tmp_path / "home" / ".config" / "ICDHlpr",
        program_name="icdhelper",
    )


@pytest.fixture
def executable(tmp_path):
    path = tmp_path / "bin" / "vkcube"
    path.parent.mkdir(parents=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return Path(path)


@pytest.fixture
def make_manifests():
    return write_manifests
