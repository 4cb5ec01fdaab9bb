"""Constants for encoreconv."""

from pathlib import Path

from encoreconv import __version__

# Application constants
APP_NAME = "encoreconv"
APP_VERSION = __version__

# Default paths
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_LOG_DIR = ".logs"
DEFAULT_LOG_RETENTION_DAYS = 7

# Captured tool output longer than this is shortened in log events
DEFAULT_LOG_MAX_VALUE_LENGTH = 500
DEFAULT_CONFIG_FILE = "encoreconv.yaml"

# Config file locations (in order of priority)
CONFIG_LOCATIONS = [
    Path.cwd() / DEFAULT_CONFIG_FILE,
    Path.home() / ".config" / APP_NAME / "config.yaml",
]

# File formats
SOURCE_EXTENSION = ".enc"
INTERMEDIATE_EXTENSION = ".ly"
FINAL_EXTENSION = ".musicxml"

# External tools
DEFAULT_ENC2LY_NAME = "go-enc2ly"
DEFAULT_PYTHON_NAME = "python3"
DEFAULT_LIBRARY = "ly"
DEFAULT_SUBCOMMAND = "musicxml"
DEFAULT_SHELL = "/bin/sh"

# Well-known install directories, checked in order before the shell fallback.
# "~" is expanded at lookup time.
DEFAULT_SEARCH_DIRS = [
    "~/go/bin",
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/usr/local/go/bin",
    "~/.local/bin",
    "/usr/bin",
]

# Install hints shown when a dependency is missing
ENC2LY_INSTALL_HINT = "go install github.com/hanwen/go-enc2ly@latest"
LIBRARY_INSTALL_HINT = "pip3 install python-ly"

# Failure reason recorded on a job interrupted by cancellation
CANCELLED_REASON = "cancelled by user"
