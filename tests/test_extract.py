import io
import lzma
import os
import tarfile

import pytest

from zigfetch.exceptions import DecodeError, FileSystemError
from zigfetch.extract import ensure_destination, extract_archive, is_safe_archive_member
from zigfetch.progress import ProgressStyle

pytestmark = [pytest.mark.core_downloads, pytest.mark.unit]

QUIET = ProgressStyle(enabled=False)


def test_round_trip_reproduces_paths_and_contents(make_tarball, tmp_path):
    archive = make_tarball({"a/b.txt": b"bee", "a/c/d.txt": b"dee"})
    destination = tmp_path / "install"

    names = extract_archive(archive, destination, QUIET)

    assert (destination / "a" / "b.txt").read_bytes() == b"bee"
    assert (destination / "a" / "c" / "d.txt").read_bytes() == b"dee"
    # Entries are processed in archive order: directories before their files
    assert names == ["a", "a/c", "a/b.txt", "a/c/d.txt"]


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_mode_bits_are_preserved(make_tarball, tmp_path):
    archive = make_tarball(
        {"zig/zig": b"\x7fELF", "zig/LICENSE": b"MIT"},
        modes={"zig/zig": 0o755, "zig/LICENSE": 0o644},
    )
    destination = tmp_path / "install"

    extract_archive(archive, destination, QUIET)

    assert os.access(destination / "zig" / "zig", os.X_OK)
    assert (destination / "zig" / "LICENSE").stat().st_mode & 0o777 == 0o644


def test_reextraction_leaves_unrelated_files_alone(make_tarball, tmp_path):
    archive = make_tarball({"a/b.txt": b"bee", "a/c/d.txt": b"dee"})
    destination = tmp_path / "install"
    extract_archive(archive, destination, QUIET)
    (destination / "a" / "local.txt").write_text("mine")
    (destination / "other").mkdir()

    extract_archive(archive, destination, QUIET)

    assert (destination / "a" / "b.txt").read_bytes() == b"bee"
    assert (destination / "a" / "c" / "d.txt").read_bytes() == b"dee"
    assert (destination / "a" / "local.txt").read_text() == "mine"
    assert (destination / "other").is_dir()


def test_existing_destination_is_reused(make_tarball, tmp_path):
    destination = tmp_path / "install"
    destination.mkdir()

    extract_archive(make_tarball({"a/b.txt": b"bee"}), destination, QUIET)

    assert (destination / "a" / "b.txt").exists()


def test_missing_parent_directory_fails(make_tarball, tmp_path):
    destination = tmp_path / "missing" / "install"

    with pytest.raises(FileSystemError) as exc_info:
        extract_archive(make_tarball({"a/b.txt": b"bee"}), destination, QUIET)

    assert exc_info.value.path == str(destination)
    assert not destination.exists()


def test_destination_that_is_a_file_fails(tmp_path):
    destination = tmp_path / "install"
    destination.write_text("file")

    with pytest.raises(FileSystemError, match="not a directory"):
        ensure_destination(destination)


def test_corrupt_archive_raises_decode_error(tmp_path):
    staged = tmp_path / "broken.tar.xz"
    staged.write_bytes(b"this is not xz data at all")

    with pytest.raises(DecodeError):
        extract_archive(staged, tmp_path / "install", QUIET)


def test_truncated_archive_raises_decode_error(make_tarball, tmp_path):
    archive = make_tarball({"a/b.txt": os.urandom(64 * 1024)})
    data = archive.read_bytes()
    archive.write_bytes(data[: len(data) // 2])

    with pytest.raises(DecodeError):
        extract_archive(archive, tmp_path / "install", QUIET)


def test_missing_staged_file_raises_filesystem_error(tmp_path):
    with pytest.raises(FileSystemError):
        extract_archive(tmp_path / "gone.tar.xz", tmp_path / "install", QUIET)


def test_traversal_entry_is_refused(tmp_path):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        info = tarfile.TarInfo("../escape.txt")
        info.size = 3
        tar.addfile(info, io.BytesIO(b"bad"))
    staged = tmp_path / "evil.tar.xz"
    staged.write_bytes(lzma.compress(buffer.getvalue()))
    destination = tmp_path / "install"

    with pytest.raises(DecodeError, match="unsafe"):
        extract_archive(staged, destination, QUIET)

    assert not (tmp_path / "escape.txt").exists()


@pytest.mark.parametrize(
    "name, safe",
    [
        ("zig-linux/zig", True),
        ("zig-linux/lib/std/std.zig", True),
        ("./zig", True),
        ("", False),
        ("/etc/passwd", False),
        ("\\windows", False),
        ("../outside", False),
        ("a/../../outside", False),
        ("a/\x00b", False),
    ],
)
def test_is_safe_archive_member(name, safe):
    assert is_safe_archive_member(name) is safe


def test_interpreter_provides_extraction_filters():
    # extract_archive always passes filter="tar" to extractall
    assert callable(getattr(tarfile, "tar_filter", None))
