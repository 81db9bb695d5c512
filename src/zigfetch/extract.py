"""
Extraction engine.

Unpacks a staged .tar.xz artifact into the install directory, one entry at a
time in archive order.
"""

import lzma
import os
import tarfile
from pathlib import Path
from typing import Iterator, List

from zigfetch.exceptions import DecodeError, FileSystemError
from zigfetch.log_utils import logger
from zigfetch.progress import ProgressStyle, extraction_progress


def is_safe_archive_member(member_name: str) -> bool:
    """
    Determine whether an archive member name is safe to extract.

    Returns:
        `True` if the member name contains no absolute paths, parent-directory
        references, or null bytes, `False` otherwise.
    """
    if not member_name or member_name.startswith("/") or member_name.startswith("\\"):
        return False
    if "\x00" in member_name:
        return False
    normalized = os.path.normpath(member_name)
    # Reject absolute paths (including Windows drive-letter paths)
    if os.path.isabs(normalized):
        return False
    parts = normalized.replace("\\", "/").split("/")
    return ".." not in parts


def ensure_destination(destination_dir: Path) -> None:
    """
    Create `destination_dir` if it does not exist.

    Only the last path component is created; a missing parent is an error.

    Raises:
        FileSystemError: If the directory cannot be created or the path exists but
        is not a directory.
    """
    if destination_dir.is_dir():
        return
    if destination_dir.exists():
        raise FileSystemError("Install path is not a directory", str(destination_dir))
    try:
        destination_dir.mkdir()
    except OSError as e:
        raise FileSystemError(
            "Could not create install directory", str(destination_dir), str(e)
        ) from e
    logger.debug(f"Created install directory {destination_dir}")


def _checked_members(
    archive: tarfile.TarFile, names: List[str], on_entry
) -> Iterator[tarfile.TarInfo]:
    for member in archive:
        if not is_safe_archive_member(member.name):
            raise DecodeError(
                "Archive contains an unsafe entry", archive.name, member.name
            )
        names.append(member.name)
        on_entry(member.name)
        yield member


def extract_archive(
    staged_file: Path, destination_dir: Path, style: ProgressStyle
) -> List[str]:
    """
    Decompress and unpack `staged_file` into `destination_dir`.

    Entries keep their relative paths and mode bits. Files already in the destination
    that are not part of the archive are left alone; entries that exist are
    overwritten. There is no rollback: a failure can leave the destination partially
    populated.

    Returns:
        List[str]: Entry names in the order they were extracted.

    Raises:
        DecodeError: If the file is not valid xz-compressed tar data or an entry would
            land outside `destination_dir`.
        FileSystemError: On local I/O failures, including a missing parent directory
            of `destination_dir`.
    """
    ensure_destination(destination_dir)

    names: List[str] = []
    try:
        with extraction_progress(style) as progress:
            task = progress.add_task("Extracting...", total=None)

            def on_entry(name: str) -> None:
                progress.update(task, description=f"Extracting: {name}")

            # Stream mode reads the archive strictly front to back
            with tarfile.open(staged_file, mode="r|xz") as archive:
                archive.extractall(
                    path=destination_dir,
                    members=_checked_members(archive, names, on_entry),
                    filter="tar",
                )
            progress.update(task, description="Extraction complete")
    except (tarfile.TarError, lzma.LZMAError, EOFError) as e:
        raise DecodeError(
            "Could not unpack archive", str(staged_file), str(e)
        ) from e
    except OSError as e:
        raise FileSystemError(
            "Could not extract archive", str(destination_dir), str(e)
        ) from e

    logger.info(f"Extracted {len(names)} entries to {destination_dir}")
    return names
