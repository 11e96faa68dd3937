"""
Constants and configuration values for gitembed.

This module contains all hardcoded values, URLs, timeouts, cache lifetimes
and other constants used throughout the package.
"""

# Platform endpoints
GITHUB_API_BASE = "https://api.github.com"
GITHUB_WEB_BASE = "https://github.com"
GITHUB_FAVICON_URL = "https://github.com/favicon.ico"
GITLAB_API_PATH = "/api/v4"
GITEA_API_PATH = "/api/v1"

# Site display fallbacks and branding
GITHUB_SITE_NAME = "GitHub"
GITEA_SITE_NAME = "Gitea"
FORGEJO_SITE_NAME = "Forgejo"
GITLAB_SITE_NAME = "GitLab"
CUSTOM_SITE_NAME = "Git Service"

GITHUB_ACCENT_COLOR = "#24292f"
GITEA_ACCENT_COLOR = "#609926"
FORGEJO_ACCENT_COLOR = "#fb923c"
GITLAB_ACCENT_COLOR = "#fc6d26"
CUSTOM_ACCENT_COLOR = "#6366f1"

GITEA_FAVICON_PATH = "/assets/img/favicon.png"
GITLAB_FAVICON_PATH = "/assets/favicon.ico"
CUSTOM_FAVICON_PATH = "/favicon.ico"

# Network timeouts (in seconds)
API_REQUEST_TIMEOUT = 15
SITE_PROBE_TIMEOUT = 10
AVATAR_REQUEST_TIMEOUT = 10

# Cache lifetimes (in seconds)
HOUR_IN_SECONDS = 60 * 60
DAY_IN_SECONDS = 24 * HOUR_IN_SECONDS
WEEK_IN_SECONDS = 7 * DAY_IN_SECONDS

REPOSITORY_CACHE_TTL = DAY_IN_SECONDS
SITE_NAME_CACHE_TTL = DAY_IN_SECONDS
SITE_NAME_FALLBACK_CACHE_TTL = HOUR_IN_SECONDS
AVATAR_CACHE_TTL = WEEK_IN_SECONDS

# Cache key prefixes
CACHE_KEY_PREFIX = "git_embed_"
SITE_NAME_CACHE_PREFIX = f"{CACHE_KEY_PREFIX}site_name_"
AVATAR_CACHE_PREFIX = f"{CACHE_KEY_PREFIX}avatar_"

# Site title probing
SITE_TITLE_PATTERN = r"<title[^>]*>([^<]+)</title>"
SITE_TITLE_MAX_LENGTH = 100

# Download reference resolution
PREFERRED_BRANCH_NAMES = ("main", "master")
FALLBACK_BRANCH_NAME = "main"
BRANCH_DISPLAY_NAME = "Latest Code"
ARCHIVE_EXTENSION = ".zip"
REF_PREFIXES = ("refs/heads/", "refs/tags/")

# Owner types
OWNER_TYPE_USER = "User"
OWNER_TYPE_ORGANIZATION = "Organization"
ORGANIZATION_OWNER_ALIASES = ("organization", "org", "group", "team")

# User-facing messages
MSG_REPOSITORY_REQUIRED = "Repository information required"
MSG_CUSTOM_DOMAIN_REQUIRED = "Custom domain required for {platform}"
MSG_FETCH_FAILED = "Failed to fetch repository data"
MSG_CACHE_CLEARED = "Cache cleared successfully"

# Logging configuration
LOGGER_NAME = "gitembed"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "gitembed.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Configuration file names
APP_NAME = "gitembed"
CONFIG_FILE_NAME = "gitembed.yaml"

# Environment variable names
LOG_LEVEL_ENV_VAR = "GITEMBED_LOG_LEVEL"
