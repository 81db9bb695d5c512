import io
import lzma
import tarfile
from pathlib import Path

import platformdirs
import pytest
import requests

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    for marker in (
        "unit: fast isolated tests",
        "integration: tests spanning several modules",
        "core_downloads: manifest, download and extraction tests",
        "user_interface: menu and CLI tests",
        "configuration: configuration loading tests",
    ):
        config.addinivalue_line("markers", marker)


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point every user directory zigfetch touches into a temporary tree.

    Patches platformdirs user_* functions and XDG variables, redirects HOME so the
    default ~/.zig install directory lands in the temp tree, and updates the config
    module's CONFIG_DIR / CONFIG_FILE constants.
    """
    base = tmp_path_factory.mktemp("zigfetch")
    cache_dir = base / "cache"
    config_dir = base / "config"
    log_dir = base / "log"
    home_dir = base / "home"

    for path in (cache_dir, config_dir, log_dir, home_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )

    import zigfetch.config as zig_config

    monkeypatch.setattr(zig_config, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(
        zig_config, "CONFIG_FILE", str(Path(config_dir) / zig_config.CONFIG_FILE_NAME)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


def build_tar_xz(path: Path, files: dict, dirs=(), modes=None) -> Path:
    """
    Write an xz-compressed tarball containing `files` (name -> bytes).

    Parent directories are added as explicit entries before their files, the way
    release tarballs are laid out.
    """
    modes = modes or {}
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        seen = set()
        for name in list(dirs) + [
            str(Path(f).parent) for f in files if str(Path(f).parent) != "."
        ]:
            parts = Path(name).parts
            for i in range(1, len(parts) + 1):
                dir_name = "/".join(parts[:i])
                if dir_name in seen:
                    continue
                seen.add(dir_name)
                info = tarfile.TarInfo(dir_name)
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = modes.get(name, 0o644)
            tar.addfile(info, io.BytesIO(data))
    path.write_bytes(lzma.compress(buffer.getvalue()))
    return path


@pytest.fixture
def make_tarball(tmp_path):
    """Factory fixture wrapping build_tar_xz with a default location."""

    def _make(files, name="zig-linux-x86_64-0.1.0.tar.xz", **kwargs):
        return build_tar_xz(tmp_path / name, files, **kwargs)

    return _make


@pytest.fixture
def index_body():
    """Release index with the three platform keys the installer knows."""
    return {
        "master": {
            "version": "0.14.0-dev.1+abc",
            "date": "2024-06-01",
            "docs": "https://ziglang.org/documentation/master/",
            "src": {
                "tarball": "https://example.org/builds/zig-0.1.0.tar.xz",
                "shasum": "00",
                "size": "10",
            },
            "x86_64-linux": {
                "tarball": "https://example.org/builds/zig-linux-x86_64-0.1.0.tar.xz",
            },
            "x86_64-macos": {
                "tarball": "https://example.org/builds/zig-macos-x86_64-0.1.0.tar.xz",
            },
            "aarch64-macos": {
                "tarball": "https://example.org/builds/zig-macos-aarch64-0.1.0.tar.xz",
            },
        },
        "0.13.0": {
            "date": "2024-06-07",
            "x86_64-linux": {
                "tarball": "https://example.org/download/0.13.0/zig-linux-x86_64-0.13.0.tar.xz",
                "shasum": "ABCDEF",
                "size": "47082308",
            },
        },
    }
