import os

import pytest

from datapackmerger import tree_builder
from datapackmerger.errors import (
    BlacklistedEntryError,
    FileInNamespaceError,
    FileInPackError,
    MissingPackMetadataError,
)
from datapackmerger.models import ContentType
from datapackmerger.progress import ProgressCounter
from datapackmerger.tree_builder import generate, generate_namespace, generate_pack, is_blacklisted

from conftest import PACK_MCMETA, make_pack_dir, write_tree


def test_generate_directory_tree(tmp_path):
    root = write_tree(tmp_path / "functions", {
        "a.mcfunction": "say a",
        "sub/b.mcfunction": "say b",
        "empty": None,
    })
    counter = ProgressCounter()

    outcome = generate(root, ContentType.FUNCTION, progress=counter)

    node = outcome.result
    assert outcome.key == "functions"
    assert outcome.unit_delta == 2
    assert counter.count == 2
    assert counter.calls == 2
    assert node.content_type is None
    assert node.children["a.mcfunction"].payload == b"say a"
    assert node.children["a.mcfunction"].content_type is ContentType.FUNCTION
    assert node.children["sub"].children["b.mcfunction"].content_type is ContentType.FUNCTION
    assert node.children["empty"].children == {}
    assert not node.children["empty"].is_leaf


def test_size_weighted_unit_count(tmp_path):
    root = write_tree(tmp_path / "recipes", {"a.json": "12345", "b.json": "123"})
    outcome = generate(root, ContentType.RECIPE, size_weighted=True)
    assert outcome.unit_delta == 8


def test_blacklisted_file_raises_and_is_skipped_in_directories(tmp_path):
    root = write_tree(tmp_path / "functions", {"a.mcfunction": "say a", ".DS_Store": "junk"})

    with pytest.raises(BlacklistedEntryError):
        generate(root / ".DS_Store", ContentType.FUNCTION)

    outcome = generate(root, ContentType.FUNCTION)
    assert set(outcome.result.children) == {"a.mcfunction"}


def test_is_blacklisted_matches_name_and_suffix(tmp_path):
    assert is_blacklisted(tmp_path / "Thumbs.db")
    assert is_blacklisted(tmp_path / "._x.DS_Store")
    assert not is_blacklisted(tmp_path / "load.json")
    assert is_blacklisted(tmp_path / "notes.bak", blacklist=[".bak"])


def test_missing_path_is_an_io_error(tmp_path):
    with pytest.raises(OSError):
        generate(tmp_path / "missing.json", ContentType.TAG)


def test_unreadable_file_is_left_out(tmp_path, monkeypatch):
    root = write_tree(tmp_path / "functions", {
        "one.mcfunction": "1",
        "two.mcfunction": "2",
        "locked.mcfunction": "secret",
        "three.mcfunction": "3",
    })
    real_read = tree_builder._read_payload

    def fake_read(path):
        if path.name == "locked.mcfunction":
            raise PermissionError(13, "Permission denied", str(path))
        return real_read(path)

    monkeypatch.setattr(tree_builder, "_read_payload", fake_read)

    outcome = generate(root, ContentType.FUNCTION)

    assert set(outcome.result.children) == {"one.mcfunction", "two.mcfunction", "three.mcfunction"}
    assert outcome.unit_delta == 3


@pytest.mark.skipif(os.name != "posix", reason="symlinks need a POSIX host")
def test_dangling_symlink_is_left_out(tmp_path):
    root = write_tree(tmp_path / "functions", {"ok.mcfunction": "ok"})
    (root / "broken.mcfunction").symlink_to(root / "does_not_exist")

    outcome = generate(root, ContentType.FUNCTION)

    assert set(outcome.result.children) == {"ok.mcfunction"}


def test_generate_namespace_classifies_categories(tmp_path):
    root = write_tree(tmp_path / "alpha", {
        "functions/load.mcfunction": "say hi",
        "tags/functions/load.json": '{"values": []}',
        "loot_tables/chest.json": "{}",
        "worldgen/noise.json": "{}",
        "stray.txt": "not in a category",
    })

    outcome = generate_namespace(root)
    children = outcome.result.children

    assert outcome.result.name == "alpha"
    assert set(children) == {"functions", "tags", "loot_tables", "worldgen"}
    assert children["functions"].children["load.mcfunction"].content_type is ContentType.FUNCTION
    assert children["tags"].children["functions"].children["load.json"].content_type is ContentType.TAG
    assert children["loot_tables"].children["chest.json"].content_type is ContentType.LOOT_TABLE
    assert children["worldgen"].children["noise.json"].content_type is ContentType.UNKNOWN
    assert outcome.unit_delta == 4


def test_generate_namespace_rejects_files(tmp_path):
    stray = tmp_path / "stray.json"
    stray.write_text("{}")
    with pytest.raises(FileInNamespaceError):
        generate_namespace(stray)


def test_generate_pack(sample_pack_dir):
    (sample_pack_dir / "pack.png").write_bytes(b"\x89PNG")
    (sample_pack_dir / "data" / "readme.txt").write_text("stray file in data")

    outcome = generate_pack(sample_pack_dir)
    pack = outcome.result

    assert pack.name == "alpha_pack"
    assert pack.source_location == sample_pack_dir
    assert pack.root_metadata == PACK_MCMETA
    assert set(pack.namespaces) == {"alpha", "minecraft"}
    assert set(pack.root_files) == {"pack.png"}
    assert pack.root_files["pack.png"].content_type is ContentType.UNKNOWN
    # pack.mcmeta, pack.png and five data files.
    assert pack.total_unit_count == 7
    assert outcome.unit_delta == 7


def test_generate_pack_uses_given_name_and_source(sample_pack_dir, tmp_path):
    outcome = generate_pack(sample_pack_dir, name="renamed", source_location=tmp_path / "renamed.zip")
    assert outcome.result.name == "renamed"
    assert outcome.result.source_location == tmp_path / "renamed.zip"
    assert outcome.key == "renamed"


def test_generate_pack_requires_directory_and_metadata(tmp_path):
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x")
    with pytest.raises(FileInPackError):
        generate_pack(not_a_dir)

    no_meta = write_tree(tmp_path / "nometa", {"data/ns/functions/a.mcfunction": "a"})
    with pytest.raises(MissingPackMetadataError):
        generate_pack(no_meta)


def test_generate_pack_without_data_folder(tmp_path):
    root = make_pack_dir(tmp_path / "bare", {})
    (root / "data").rmdir()
    pack = generate_pack(root).result
    assert pack.namespaces == {}
