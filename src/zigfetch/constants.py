"""
Constants and configuration values for zigfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Upstream release index
ZIG_INDEX_URL = "https://ziglang.org/download/index.json"
DEFAULT_CHANNEL = "master"

# Platform keys as published in the release index
PLATFORM_KEY_X86_64_LINUX = "x86_64-linux"
PLATFORM_KEY_X86_64_MACOS = "x86_64-macos"
PLATFORM_KEY_AARCH64_MACOS = "aarch64-macos"

# Network timeouts (in seconds)
MANIFEST_REQUEST_TIMEOUT = 10
DEFAULT_REQUEST_TIMEOUT = 30

# Download and retry settings
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_BACKOFF_FACTOR = 0.3
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)
DEFAULT_CHUNK_SIZE = 64 * 1024

# File and directory names
DEFAULT_INSTALL_DIR_NAME = ".zig"
FALLBACK_DOWNLOAD_FILENAME = "tmp.bin"
MANIFEST_CACHE_FILE = "manifest_cache.json"
HASH_READ_BLOCK_SIZE = 1024 * 1024

# Logging configuration
LOGGER_NAME = "zigfetch"
LOG_FILE_NAME = "zigfetch.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Configuration file names
APP_NAME = "zigfetch"
CONFIG_FILE_NAME = "zigfetch.yaml"

# Environment variable names
LOG_LEVEL_ENV_VAR = "ZIGFETCH_LOG_LEVEL"

# Menu settings
MENU_INDICATOR = "*"
MENU_QUIT_KEYS = (ord("q"), 27)  # q and Esc

# Progress bar appearance
PROGRESS_BAR_COMPLETE_STYLE = "cyan"
PROGRESS_BAR_FINISHED_STYLE = "blue"
PROGRESS_SPINNER = "dots"
