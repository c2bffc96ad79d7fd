import io
import json
import tarfile
import zipfile
from pathlib import Path

import pytest

PACK_MCMETA = b'{"pack": {"pack_format": 6, "description": "test pack"}}'


def tag_bytes(values, replace=None):
    document = {}
    if replace is not None:
        document["replace"] = replace
    document["values"] = list(values)
    return json.dumps(document).encode("utf-8")


def write_tree(root: Path, files: dict) -> Path:
    """Write ``{relative path: bytes or str}`` under ``root``; a value of None makes a folder."""
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = root / relative
        if content is None:
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return root


def make_pack_dir(root: Path, files: dict, metadata: bytes = PACK_MCMETA) -> Path:
    write_tree(root, {"pack.mcmeta": metadata, "data": None, **files})
    return root


def make_zip(path: Path, files: dict, directories=()) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for directory in directories:
            archive.writestr(directory.rstrip("/") + "/", b"")
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return path


def make_tar_gz(path: Path, files: dict, directories=()) -> Path:
    with tarfile.open(path, "w:gz") as archive:
        for directory in directories:
            info = tarfile.TarInfo(directory.rstrip("/"))
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            archive.addfile(info)
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return path


def read_tree(root: Path) -> dict:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in root.rglob("*")
        if path.is_file()
    }


@pytest.fixture
def sample_pack_files():
    return {
        "data/alpha/functions/load.mcfunction": "say alpha loaded",
        "data/alpha/functions/util/tick.mcfunction": "say tick",
        "data/alpha/tags/functions/load.json": tag_bytes(["alpha:load"]),
        "data/alpha/recipes/stick.json": '{"type": "crafting_shaped"}',
        "data/minecraft/tags/functions/tick.json": tag_bytes(["alpha:util/tick"]),
    }


@pytest.fixture
def sample_pack_dir(tmp_path, sample_pack_files):
    return make_pack_dir(tmp_path / "alpha_pack", sample_pack_files)


@pytest.fixture
def scratch_root(tmp_path):
    return tmp_path / "scratch"
