import json

import pytest
import requests

from zigfetch import manifest
from zigfetch.exceptions import DecodeError, HTTPError, NetworkError
from zigfetch.manifest import (
    ArtifactDescriptor,
    ManifestCache,
    fetch_manifest,
    parse_manifest,
)

pytestmark = [pytest.mark.core_downloads, pytest.mark.unit]

INDEX_URL = "https://ziglang.org/download/index.json"


def _response(mocker, status=200, body=None, headers=None, json_error=None):
    response = mocker.MagicMock()
    response.status_code = status
    response.headers = headers or {}
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status} Error"
        )
    return response


class TestParseManifest:
    def test_parses_channels_and_artifacts(self, index_body):
        parsed = parse_manifest(index_body)

        assert set(parsed.channels) == {"master", "0.13.0"}
        master = parsed.channel("master")
        assert master.version == "0.14.0-dev.1+abc"
        assert master.date == "2024-06-01"
        assert master.artifacts["x86_64-linux"] == ArtifactDescriptor(
            tarball="https://example.org/builds/zig-linux-x86_64-0.1.0.tar.xz"
        )
        # "docs" is a plain string and never becomes an artifact
        assert "docs" not in master.artifacts

    def test_size_and_shasum_are_normalized(self, index_body):
        parsed = parse_manifest(index_body)
        artifact = parsed.channel("0.13.0").artifacts["x86_64-linux"]

        assert artifact.size == 47082308
        assert artifact.shasum == "abcdef"

    def test_unknown_keys_are_ignored(self):
        parsed = parse_manifest(
            {
                "master": {
                    "riscv64-linux": {"tarball": "https://example.org/r.tar.xz"},
                    "notes": 42,
                }
            }
        )
        assert list(parsed.channel("master").artifacts) == ["riscv64-linux"]

    def test_non_object_document_is_rejected(self):
        with pytest.raises(DecodeError) as exc_info:
            parse_manifest(["master"], source=INDEX_URL)
        assert exc_info.value.source == INDEX_URL

    def test_document_without_channels_is_rejected(self):
        with pytest.raises(DecodeError):
            parse_manifest({"master": "gone"})

    def test_artifact_without_tarball_string_is_rejected(self):
        with pytest.raises(DecodeError, match="x86_64-linux"):
            parse_manifest({"master": {"x86_64-linux": {"tarball": 12}}})

    def test_invalid_size_is_rejected(self):
        with pytest.raises(DecodeError):
            parse_manifest(
                {
                    "master": {
                        "x86_64-linux": {
                            "tarball": "https://example.org/z.tar.xz",
                            "size": "big",
                        }
                    }
                }
            )


class TestFetchManifest:
    def test_fetch_success(self, mocker, index_body):
        session = mocker.MagicMock()
        session.get.return_value = _response(mocker, body=index_body)

        parsed = fetch_manifest(INDEX_URL, session=session)

        assert "x86_64-macos" in parsed.channel("master").artifacts
        session.get.assert_called_once()
        assert session.get.call_args.args[0] == INDEX_URL
        session.close.assert_not_called()

    def test_creates_and_closes_own_session(self, mocker, index_body):
        session = mocker.MagicMock()
        session.get.return_value = _response(mocker, body=index_body)
        mocker.patch("zigfetch.manifest.create_session", return_value=session)

        fetch_manifest(INDEX_URL)

        session.close.assert_called_once()

    def test_connection_error_becomes_network_error(self, mocker):
        session = mocker.MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(NetworkError) as exc_info:
            fetch_manifest(INDEX_URL, session=session)
        assert exc_info.value.url == INDEX_URL
        assert not isinstance(exc_info.value, HTTPError)

    def test_http_status_becomes_http_error(self, mocker):
        session = mocker.MagicMock()
        session.get.return_value = _response(mocker, status=503)

        with pytest.raises(HTTPError) as exc_info:
            fetch_manifest(INDEX_URL, session=session)
        assert exc_info.value.status_code == 503

    def test_invalid_json_becomes_decode_error(self, mocker):
        session = mocker.MagicMock()
        session.get.return_value = _response(
            mocker, json_error=json.JSONDecodeError("Expecting value", "<html>", 0)
        )

        with pytest.raises(DecodeError) as exc_info:
            fetch_manifest(INDEX_URL, session=session)
        assert "Expecting value" in str(exc_info.value)


class TestManifestCache:
    def test_store_and_load_round_trip(self, tmp_path, index_body):
        cache = ManifestCache(str(tmp_path))

        assert cache.store(INDEX_URL, index_body, '"abc"', None) is True
        record = cache.load(INDEX_URL)

        assert record["body"] == index_body
        assert cache.conditional_headers(record) == {"If-None-Match": '"abc"'}

    def test_store_without_validators_is_skipped(self, tmp_path, index_body):
        cache = ManifestCache(str(tmp_path))

        assert cache.store(INDEX_URL, index_body, None, None) is False
        assert cache.load(INDEX_URL) is None

    def test_load_ignores_other_urls_and_garbage(self, tmp_path, index_body):
        cache = ManifestCache(str(tmp_path))
        cache.store(INDEX_URL, index_body, '"abc"', None)
        assert cache.load("https://mirror.example.org/index.json") is None

        (tmp_path / manifest.MANIFEST_CACHE_FILE).write_text("{not json")
        assert cache.load(INDEX_URL) is None

    def test_default_location_uses_platformdirs(self):
        import platformdirs

        cache = ManifestCache()
        assert cache.cache_dir == platformdirs.user_cache_dir("zigfetch")

    def test_not_modified_reuses_cached_body(self, mocker, tmp_path, index_body):
        cache = ManifestCache(str(tmp_path))
        cache.store(INDEX_URL, index_body, '"abc"', "Sat, 01 Jun 2024 00:00:00 GMT")
        session = mocker.MagicMock()
        session.get.return_value = _response(mocker, status=304)

        parsed = fetch_manifest(INDEX_URL, session=session, cache=cache)

        assert parsed.channel("master").version == "0.14.0-dev.1+abc"
        sent_headers = session.get.call_args.kwargs["headers"]
        assert sent_headers["If-None-Match"] == '"abc"'
        assert sent_headers["If-Modified-Since"] == "Sat, 01 Jun 2024 00:00:00 GMT"

    def test_fresh_response_updates_cache(self, mocker, tmp_path, index_body):
        cache = ManifestCache(str(tmp_path))
        session = mocker.MagicMock()
        session.get.return_value = _response(
            mocker, body=index_body, headers={"ETag": '"v2"'}
        )

        fetch_manifest(INDEX_URL, session=session, cache=cache)

        assert session.get.call_args.kwargs["headers"] == {}
        assert cache.load(INDEX_URL)["etag"] == '"v2"'
