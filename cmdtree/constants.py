"""
Constants for the cmdtree CLI application.

Note: The ``DEFAULT_*`` option values are fallbacks only.
Actual values come from the ``options`` block of the configuration file,
or from the matching environment variables.
"""
import os

# =============================================================================
# Configuration discovery
# =============================================================================

CONFIG_FILE_NAMES = [
    "cmdtree.yaml",
    "cmdtree.yml",
    "Cmdtree.yaml",
    "Cmdtree.yml",
    "cmdtree.json",
]

# Explicit configuration path, checked before searching the directory tree
CONFIG_FILE_ENV_VAR = "CMDTREE_FILE"

DEFAULT_CONFIG_FILE = """\
# Commands are bash templates: $name inserts a variable and $$ is a literal $
# (write $$1, $$? or $$(date) for shell expansions).
description: My cmdtree file

variables:
  name: Godzilla

commands:
  greet:
    description: Say hello
    execute: echo "Hello, $name!"
"""

# =============================================================================
# Execution
# =============================================================================

# Only one interpreter is supported; commands run as `bash -c <command>`
DEFAULT_SHELL = "bash"

# =============================================================================
# Options (environment fallbacks)
# =============================================================================

PRINT_COMMANDS_ENV_VAR = "CMDTREE_PRINT_COMMANDS"
PRINT_VARIABLES_ENV_VAR = "CMDTREE_PRINT_VARIABLES"

TRUTHY_VALUES = ["true", "t", "yes", "y", "1"]

# Fixed width so the mask does not leak the value's length
SENSITIVE_MASK = "********"

# =============================================================================
# Command-line surface
# =============================================================================

# Flags owned by the root group itself
RESERVED_FLAG_NAMES = ["help", "verbose", "version"]
RESERVED_SHORT_FLAG_NAMES = ["v"]

# click parameter receiving the arguments of a pass-through command
PASSTHROUGH_ARGS_PARAM = "passthrough_args"

DEFAULT_CONFIRM_AFFIRMATIVE = "Yes"
DEFAULT_CONFIRM_NEGATIVE = "No"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def is_truthy(value: str) -> bool:
    """Check whether an environment variable value means "on"."""
    return value.strip().lower() in TRUTHY_VALUES


def env_flag(name: str) -> bool:
    """Read a boolean option from the environment, defaulting to False."""
    value = os.environ.get(name)
    if value is None:
        return False
    return is_truthy(value)
