"""
Release manifest client.

Fetches the upstream Zig release index and parses it into typed records. The
index maps channel names ("master", "0.13.0", ...) to objects holding one entry
per platform key plus a few metadata fields.
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import platformdirs
import requests

from zigfetch.constants import (
    APP_NAME,
    MANIFEST_CACHE_FILE,
    MANIFEST_REQUEST_TIMEOUT,
)
from zigfetch.exceptions import DecodeError, HTTPError, NetworkError
from zigfetch.log_utils import logger
from zigfetch.utils import create_session


@dataclass(frozen=True)
class ArtifactDescriptor:
    tarball: str
    shasum: Optional[str] = None
    size: Optional[int] = None


@dataclass
class ChannelEntry:
    version: Optional[str] = None
    date: Optional[str] = None
    artifacts: Dict[str, ArtifactDescriptor] = field(default_factory=dict)


@dataclass
class ReleaseManifest:
    channels: Dict[str, ChannelEntry] = field(default_factory=dict)

    def channel(self, name: str) -> Optional[ChannelEntry]:
        return self.channels.get(name)


def _parse_size(value: Any, key: str, source: Optional[str]) -> Optional[int]:
    # Upstream publishes sizes as decimal strings
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecodeError(f"Invalid size for '{key}'", source, repr(value))
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid size for '{key}'", source, str(e)) from e


def _parse_artifact(
    key: str, raw: Dict[str, Any], source: Optional[str]
) -> ArtifactDescriptor:
    tarball = raw.get("tarball")
    if not isinstance(tarball, str) or not tarball:
        raise DecodeError(f"Artifact '{key}' has no tarball URL", source)
    shasum = raw.get("shasum")
    if shasum is not None and not isinstance(shasum, str):
        raise DecodeError(f"Invalid shasum for '{key}'", source, repr(shasum))
    return ArtifactDescriptor(
        tarball=tarball,
        shasum=shasum.lower() if shasum else None,
        size=_parse_size(raw.get("size"), key, source),
    )


def _parse_channel(raw: Dict[str, Any], source: Optional[str]) -> ChannelEntry:
    entry = ChannelEntry(
        version=raw.get("version") if isinstance(raw.get("version"), str) else None,
        date=raw.get("date") if isinstance(raw.get("date"), str) else None,
    )
    for key, value in raw.items():
        # Metadata objects such as "src" or "bootstrap" also carry a tarball;
        # they are kept and simply never looked up.
        if not isinstance(value, dict) or "tarball" not in value:
            continue
        entry.artifacts[key] = _parse_artifact(key, value, source)
    return entry


def parse_manifest(data: Any, source: Optional[str] = None) -> ReleaseManifest:
    """
    Build a ReleaseManifest from the decoded JSON body of the release index.

    Parameters:
        data (Any): Decoded JSON document.
        source (str | None): URL the document came from, used in error messages.

    Returns:
        ReleaseManifest: One ChannelEntry per object-valued channel.

    Raises:
        DecodeError: If the document is not an object, holds no channels, or an
        artifact entry is malformed.
    """
    if not isinstance(data, dict):
        raise DecodeError(
            "Release index is not a JSON object", source, type(data).__name__
        )

    manifest = ReleaseManifest()
    for name, raw in data.items():
        if not isinstance(raw, dict):
            logger.debug(f"Ignoring non-object channel '{name}' in release index")
            continue
        manifest.channels[name] = _parse_channel(raw, source)

    if not manifest.channels:
        raise DecodeError("Release index contains no channels", source)
    return manifest


class ManifestCache:
    """
    On-disk copy of the last release index together with its validators.

    Stores the JSON body with the response's ETag and Last-Modified headers so the
    next fetch can be made conditional. Write failures are logged and ignored.
    """

    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = cache_dir or platformdirs.user_cache_dir(APP_NAME)
        self.cache_file = os.path.join(self.cache_dir, MANIFEST_CACHE_FILE)

    def load(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Return the cached record for `url`, or None when absent or unreadable.
        """
        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Ignoring unreadable manifest cache {self.cache_file}: {e}")
            return None

        if not isinstance(record, dict) or record.get("url") != url:
            return None
        if "body" not in record:
            return None
        return record

    def conditional_headers(self, record: Optional[Dict[str, Any]]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if not record:
            return headers
        if record.get("etag"):
            headers["If-None-Match"] = record["etag"]
        if record.get("last_modified"):
            headers["If-Modified-Since"] = record["last_modified"]
        return headers

    def store(
        self,
        url: str,
        body: Any,
        etag: Optional[str],
        last_modified: Optional[str],
    ) -> bool:
        """
        Atomically write the cache record.

        Returns:
            bool: `True` if the record was written, `False` otherwise.
        """
        if not etag and not last_modified:
            return False

        record = {
            "url": url,
            "etag": etag,
            "last_modified": last_modified,
            "body": body,
        }
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.cache_dir, prefix="tmp-", suffix=".json"
            )
        except OSError as e:
            logger.debug(f"Could not create manifest cache in {self.cache_dir}: {e}")
            return False

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(record, f)
            os.replace(temp_path, self.cache_file)
        except OSError as e:
            logger.debug(f"Could not write manifest cache {self.cache_file}: {e}")
            return False
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
        return True


def fetch_manifest(
    url: str,
    session: Optional[requests.Session] = None,
    cache: Optional[ManifestCache] = None,
) -> ReleaseManifest:
    """
    Download and parse the release index.

    Issues one GET (transient failures are retried by the session's adapter). When a
    cache is given and holds validators for `url`, the request is conditional and a
    304 answer reuses the cached body.

    Parameters:
        url (str): Release index URL.
        session (requests.Session | None): Session to use; a retrying session is
            created and closed here when omitted.
        cache (ManifestCache | None): Optional conditional-request cache.

    Returns:
        ReleaseManifest: The parsed index.

    Raises:
        NetworkError: On connection failures or timeouts.
        HTTPError: On a non-success HTTP status.
        DecodeError: If the body is not valid JSON or has the wrong shape.
    """
    owns_session = session is None
    if session is None:
        session = create_session()

    cached = cache.load(url) if cache else None
    headers = cache.conditional_headers(cached) if cache else {}

    try:
        logger.debug(f"Fetching release index from {url}")
        try:
            response = session.get(
                url, headers=headers, timeout=MANIFEST_REQUEST_TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                "Could not fetch release index", url=url, details=str(e)
            ) from e

        if response.status_code == 304 and cached is not None:
            logger.debug("Release index not modified; using cached copy")
            return parse_manifest(cached["body"], url)

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise HTTPError(
                "Release index request failed",
                status_code=response.status_code,
                url=url,
                details=str(e),
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(
                "Release index is not valid JSON", url, details=str(e)
            ) from e

        manifest = parse_manifest(body, url)
        if cache:
            cache.store(
                url,
                body,
                response.headers.get("ETag"),
                response.headers.get("Last-Modified"),
            )
        logger.debug(f"Release index lists {len(manifest.channels)} channels")
        return manifest
    finally:
        if owns_session:
            session.close()
