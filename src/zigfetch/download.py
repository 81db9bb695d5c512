"""
Download engine.

Streams one artifact to a staging directory, reporting progress as chunks
arrive, then checks the staged file against the size and SHA-256 published in
the release index.
"""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests
import urllib3

from zigfetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    FALLBACK_DOWNLOAD_FILENAME,
)
from zigfetch.exceptions import (
    ChecksumMismatchError,
    FileSystemError,
    HTTPError,
    MissingContentLengthError,
    NetworkError,
)
from zigfetch.log_utils import logger
from zigfetch.manifest import ArtifactDescriptor
from zigfetch.progress import ProgressStyle, download_progress
from zigfetch.utils import calculate_sha256, create_session, format_size


@dataclass
class DownloadStaging:
    source_url: str
    staging_path: Path
    total_bytes: Optional[int] = None
    bytes_transferred: int = 0


def filename_from_url(url: str) -> str:
    """
    Return the last non-empty path segment of `url`, URL-decoded.

    Falls back to FALLBACK_DOWNLOAD_FILENAME when the path has no usable segment
    (e.g. it ends with a slash).
    """
    path = urlparse(url).path
    segment = unquote(path.split("/")[-1]) if path else ""
    if not segment or segment in (".", "..") or "\x00" in segment:
        return FALLBACK_DOWNLOAD_FILENAME
    return segment


def _content_length(response: requests.Response) -> Optional[int]:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        length = int(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring invalid Content-Length header: {value!r}")
        return None
    return length if length >= 0 else None


def verify_artifact(path: Path, descriptor: ArtifactDescriptor) -> None:
    """
    Compare the staged file with the size and shasum from the release index.

    Fields missing from the descriptor are not checked.

    Raises:
        ChecksumMismatchError: If the size or SHA-256 digest differs.
        FileSystemError: If the file cannot be read.
    """
    if descriptor.size is not None:
        try:
            actual_size = os.path.getsize(path)
        except OSError as e:
            raise FileSystemError(
                "Could not read staged file", str(path), str(e)
            ) from e
        if actual_size != descriptor.size:
            raise ChecksumMismatchError(
                "Downloaded file has the wrong size",
                source=descriptor.tarball,
                expected=str(descriptor.size),
                actual=str(actual_size),
            )

    if descriptor.shasum:
        digest = calculate_sha256(str(path))
        if digest is None:
            raise FileSystemError("Could not read staged file", str(path))
        if digest != descriptor.shasum:
            raise ChecksumMismatchError(
                "SHA-256 mismatch for downloaded file",
                source=descriptor.tarball,
                expected=descriptor.shasum,
                actual=digest,
            )
        logger.debug(f"SHA-256 verified for {path.name}")


def download_artifact(
    descriptor: ArtifactDescriptor,
    staging_dir: Path,
    style: ProgressStyle,
    session: Optional[requests.Session] = None,
    require_content_length: bool = False,
    verify: bool = True,
) -> Path:
    """
    Stream `descriptor.tarball` into `staging_dir` and return the staged path.

    The file name is taken from the final (post-redirect) URL. The body is
    requested without content coding, written exactly as received and fsynced
    before the file is closed. When the server reports no Content-Length the
    progress display degrades to a spinner, unless `require_content_length` is set. Partial files are left in place on failure.

    Raises:
        NetworkError: On connection failures, or when the body length differs from
            the reported Content-Length.
        HTTPError: On a non-success HTTP status.
        MissingContentLengthError: If `require_content_length` is set and the
            server sends no Content-Length.
        FileSystemError: If the staging directory or file cannot be written.
        ChecksumMismatchError: If `verify` is set and the file does not match the
            published size or shasum.
    """
    url = descriptor.tarball
    owns_session = session is None
    if session is None:
        session = create_session()

    response = None
    try:
        logger.debug(f"Starting download of {url}")
        try:
            response = session.get(
                url,
                stream=True,
                timeout=DEFAULT_REQUEST_TIMEOUT,
                headers={"Accept-Encoding": "identity"},
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = response.status_code if response is not None else None
            raise HTTPError(
                "Artifact download failed", status_code=status, url=url, details=str(e)
            ) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                "Could not start download", url=url, details=str(e)
            ) from e

        total = _content_length(response)
        if total is None:
            if require_content_length:
                raise MissingContentLengthError(url)
            logger.warning("Server did not report a download size; showing a spinner")

        filename = filename_from_url(response.url or url)
        try:
            staging_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                "Could not create staging directory", str(staging_dir), str(e)
            ) from e

        staging = DownloadStaging(
            source_url=url, staging_path=staging_dir / filename, total_bytes=total
        )
        start_time = time.time()
        try:
            with (
                download_progress(style, total) as progress,
                open(staging.staging_path, "wb") as dest,
            ):
                task = progress.add_task(f"Downloading {filename}", total=total)
                # Raw wire bytes, so the count matches Content-Length
                for chunk in response.raw.stream(
                    DEFAULT_CHUNK_SIZE, decode_content=False
                ):
                    if not chunk:
                        continue
                    dest.write(chunk)
                    staging.bytes_transferred += len(chunk)
                    progress.update(task, advance=len(chunk))
                dest.flush()
                os.fsync(dest.fileno())
        # RequestException derives from IOError, so it must be caught first
        except (
            requests.exceptions.RequestException,
            urllib3.exceptions.HTTPError,
        ) as e:
            raise NetworkError(
                "Connection lost during download", url=url, details=str(e)
            ) from e
        except OSError as e:
            raise FileSystemError(
                "Could not write downloaded file",
                str(staging.staging_path),
                str(e),
            ) from e

        if total is not None and staging.bytes_transferred != total:
            raise NetworkError(
                "Incomplete download",
                url=url,
                details=f"received {staging.bytes_transferred} of {total} bytes",
            )

        logger.debug(
            "Download elapsed time: %.2fs for %s", time.time() - start_time, url
        )
        logger.info(
            f"Downloaded: {filename} ({format_size(staging.bytes_transferred)})"
        )
    finally:
        if response is not None:
            response.close()
        if owns_session:
            session.close()

    if verify:
        verify_artifact(staging.staging_path, descriptor)
    return staging.staging_path
