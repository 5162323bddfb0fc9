"""Global constants for release-deployer"""

import re

APP_NAME = "release-deployer"
LOG_FORMAT = "%(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Project configuration
CONFIG_VERSION = "1.0"
PROJECT_CONFIG_FILE = ".release-deployer.yaml"

# Default configuration values
DEFAULT_APP_NAME = "app"
DEFAULT_RETAINED_BACKUPS = 5
DEFAULT_HEALTH_CHECK_PORTS = [3000, 8080, 4000, 5000]
DEFAULT_HEALTH_CHECK_PATHS = ["/health", "/"]
DEFAULT_HEALTH_CHECK_HOST = "localhost"
DEFAULT_HEALTH_CHECK_DELAY = 5  # seconds
DEFAULT_HEALTH_CHECK_TIMEOUT = 3  # seconds per probe
DEFAULT_FETCH_TIMEOUT = 300  # seconds
DEFAULT_COMMAND_TIMEOUT = 900  # seconds
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB
DEFAULT_ENTRYPOINT = "index.js"

# Archive validation
MIN_ARCHIVE_SIZE = 1024  # bytes
GZIP_MAGIC = b"\x1f\x8b"
DIAGNOSTIC_PREVIEW_BYTES = 500
ARCHIVE_TYPE_GZIP = "gzip"

# Scratch workspace layout
SCRATCH_PREFIX = "deploy-"
DOWNLOAD_FILE_NAME = "release.tar.gz"
EXTRACT_DIR_NAME = "extracted"

# Backups
BACKUP_FILE_PATTERN = "{app_name}_backup_{timestamp}.tar.gz"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S_%f"
DEFAULT_BACKUP_EXCLUDES = [
    "node_modules",
    ".git",
]

# Paths preserved in the live directory across redeploys
DEFAULT_INSTALL_EXCLUDES = [
    "node_modules",
    ".env",
    "*.log",
]

# Dependency manifest
PACKAGE_MANIFEST_FILE = "package.json"
BUILD_SCRIPT = "build"
MIGRATE_SCRIPT = "migrate"

# Supervisor files
PM2_ECOSYSTEM_FILE = "ecosystem.config.js"
COMPOSE_FILES = [
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
]

# History and locking
HISTORY_FILE_PATTERN = "{app_name}-history.jsonl"
LOCK_FILE_PATTERN = "deploy-{app_name}.lock"

# Release events
RELEASE_EVENT = "release"
RELEASE_ACTION_PUBLISHED = "published"
SIGNATURE_PREFIX = "sha256="
TARBALL_SUFFIXES = (".tar.gz", ".tgz")


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "RD001"
    DOWNLOAD_FAILED = "RD002"
    NO_TRANSPORT = "RD003"
    ARCHIVE_TOO_SMALL = "RD004"
    ARCHIVE_WRONG_TYPE = "RD005"
    ARCHIVE_CORRUPT = "RD006"
    EXTRACTION_FAILED = "RD007"
    AMBIGUOUS_ROOT = "RD008"
    BACKUP_FAILED = "RD009"
    SUPERVISOR_STOP_FAILED = "RD010"
    INSTALL_COPY_FAILED = "RD011"
    DEPENDENCY_INSTALL_FAILED = "RD012"
    BUILD_FAILED = "RD013"
    MIGRATION_FAILED = "RD014"
    SUPERVISOR_START_FAILED = "RD015"
    HEALTH_UNCONFIRMED = "RD016"
    DEPLOYMENT_LOCKED = "RD017"
    BACKUP_NOT_FOUND = "RD018"
    INVALID_SIGNATURE = "RD019"
    CANCELLED = "RD020"
    UNEXPECTED = "RD099"


# Environment variables
ENV_CONFIG_PATH = "RELEASE_DEPLOYER_CONFIG"
ENV_APP_NAME = "RELEASE_DEPLOYER_APP_NAME"
ENV_LIVE_DIR = "RELEASE_DEPLOYER_LIVE_DIR"
ENV_BACKUP_DIR = "RELEASE_DEPLOYER_BACKUP_DIR"
ENV_SCRATCH_DIR = "RELEASE_DEPLOYER_SCRATCH_DIR"
ENV_LOG_FILE = "RELEASE_DEPLOYER_LOG_FILE"
ENV_WEBHOOK_SECRET = "RELEASE_DEPLOYER_WEBHOOK_SECRET"

# Validation patterns
APP_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ROCKET = "🚀"
SEPARATOR = "━" * 40

# Messages templates
MSG_DEPLOY_START = f"{EMOJI_ROCKET} Starting deployment for {{app_name}} ({{release_tag}})"
MSG_DEPLOY_SUCCESS = f"{EMOJI_SUCCESS} Deployed {{app_name}} {{release_tag}}"
MSG_DEPLOY_FAILED = f"{EMOJI_ERROR} Deployment of {{app_name}} {{release_tag}} failed at {{stage}}"
MSG_MANUAL_START = f"{EMOJI_WARNING} No process manager detected. Please start {{app_name}} manually."
MSG_HEALTH_UNCONFIRMED = f"{EMOJI_WARNING} Health check could not verify the application is running"
