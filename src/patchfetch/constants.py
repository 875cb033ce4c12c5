"""
Constants and configuration values for patchfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the package.
"""

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com"

# Network timeouts (in seconds)
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192
DEFAULT_CONNECTOR_LIMIT = 10
BYTES_PER_MEGABYTE = 1024 * 1024
FILE_SIZE_MB_LOGGING_THRESHOLD = 1.0

# HTTP status handling
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_ERROR_THRESHOLD = 400
HTTP_STATUS_RETRY_THRESHOLD = 500

# Cache configuration
HTTP_CACHE_MAX_STALE_SECONDS = 24 * 60 * 60  # 1 day
FILE_CACHE_DIR_NAME = "files"
APP_NAME = "patchfetch"

# File extensions
APK_EXTENSION = ".apk"
JSON_EXTENSION = ".json"

# Release tag convention used by the manager feed
VERSION_TAG_PREFIX = "v"
CHANGELOG_SECTION_PREFIX = "# "

# FetchResult error categories
ERROR_NOT_FOUND = "not_found"
ERROR_NETWORK_FAILURE = "network_failure"
ERROR_MALFORMED_PAYLOAD = "malformed_payload"
ERROR_MISSING_MAPPING = "missing_mapping"
ERROR_VERSION_NOT_FOUND = "version_not_found"
ERROR_FILESYSTEM = "filesystem_error"
ERROR_CONFIGURATION = "configuration_error"

# Commit history lookup: package identifier -> patches source directory
PATCH_SOURCE_ROOT = "src/main/kotlin/app/revanced/patches"
PACKAGE_PATCH_PATHS = {
    "com.google.android.youtube": "youtube",
    "com.google.android.apps.youtube.music": "music",
    "com.twitter.android": "twitter",
    "com.reddit.frontpage": "reddit",
    "com.zhiliaoapp.musically": "tiktok",
    "de.dwd.warnapp": "warnwetter",
    "com.garzotto.pflotsh.ecmwf_a": "ecmwf",
    "com.spotify.music": "spotify",
}

# Settings store
CONFIG_FILE_NAME = "patchfetch.yaml"
INTEGRATIONS_DOWNLOAD_URL_KEY = "INTEGRATIONS_DOWNLOAD_URL"
PATCHES_DOWNLOAD_URL_KEY = "PATCHES_DOWNLOAD_URL"
MANAGER_VERSION_KEY = "MANAGER_VERSION"

# Logging configuration
LOGGER_NAME = "patchfetch"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "patchfetch.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "PATCHFETCH_LOG_LEVEL"
