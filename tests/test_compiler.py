import os
import stat
import zipfile

import pytest

from datapackmerger.archive_adapter import materialize
from datapackmerger.compiler import compile_pack, flatten_pack
from datapackmerger.models import CompileOptions, CompressionMethod
from datapackmerger.progress import ProgressCounter
from datapackmerger.tree_builder import generate_pack

from conftest import PACK_MCMETA, read_tree


def test_flatten_orders_directories_before_contents(sample_pack_dir):
    pack = generate_pack(sample_pack_dir).result

    entries = flatten_pack(pack)
    names = [name for name, _ in entries]

    assert names[0] == "pack.mcmeta"
    assert entries[0][1] == PACK_MCMETA
    for index, (name, payload) in enumerate(entries):
        if payload is None:
            assert name.endswith("/")
            assert all(not other.startswith(name) for other in names[:index])
        parent = name.rstrip("/").rpartition("/")[0]
        if parent:
            assert f"{parent}/" in names[:index]


def test_compile_writes_zip_with_progress(sample_pack_dir, tmp_path):
    pack = generate_pack(sample_pack_dir).result
    output = tmp_path / "out" / "merged.zip"
    counter = ProgressCounter()

    result = compile_pack(pack, output, progress=counter)

    assert result == output
    with zipfile.ZipFile(output) as archive:
        infos = archive.infolist()
        assert infos[0].filename == "pack.mcmeta"
        assert archive.read("data/alpha/functions/load.mcfunction") == b"say alpha loaded"
        assert "data/alpha/" in archive.namelist()
        assert counter.calls == len(infos)
    # One unit per file entry, none for directory markers.
    assert counter.count == 6


def test_round_trip_reproduces_directory(sample_pack_dir, tmp_path):
    (sample_pack_dir / "pack.png").write_bytes(b"\x89PNG\r\n")
    pack = generate_pack(sample_pack_dir).result
    output = tmp_path / "round.zip"

    compile_pack(pack, output, options=CompileOptions(compression=CompressionMethod.STORED))
    location = materialize(output, tmp_path / "scratch")

    assert read_tree(location) == read_tree(sample_pack_dir)


@pytest.mark.parametrize("method", list(CompressionMethod))
def test_compression_methods(sample_pack_dir, tmp_path, method):
    pack = generate_pack(sample_pack_dir).result
    output = tmp_path / f"{method.value}.zip"

    compile_pack(pack, output, options=CompileOptions(compression=method))

    with zipfile.ZipFile(output) as archive:
        info = archive.getinfo("data/alpha/recipes/stick.json")
        assert info.compress_type == method.zip_constant
        assert archive.testzip() is None


@pytest.mark.skipif(os.name != "posix", reason="permission bits are only written on POSIX hosts")
def test_permission_bits(sample_pack_dir, tmp_path):
    pack = generate_pack(sample_pack_dir).result
    output = tmp_path / "perm.zip"

    compile_pack(pack, output, options=CompileOptions(permissions=0o640))

    with zipfile.ZipFile(output) as archive:
        file_mode = archive.getinfo("pack.mcmeta").external_attr >> 16
        dir_mode = archive.getinfo("data/").external_attr >> 16
    assert stat.S_IMODE(file_mode) == 0o640
    assert stat.S_ISREG(file_mode)
    assert stat.S_ISDIR(dir_mode)


def test_no_permission_bits_by_default(sample_pack_dir, tmp_path):
    pack = generate_pack(sample_pack_dir).result
    output = tmp_path / "plain.zip"

    compile_pack(pack, output)

    with zipfile.ZipFile(output) as archive:
        assert archive.getinfo("pack.mcmeta").external_attr >> 16 == 0
        assert archive.getinfo("data/").is_dir()
