"""
Test fixtures for the cmdtree test suite.

Provides:
- Temporary directory fixtures (isolated from any real cmdtree.yaml)
- A config builder for assembling configurations in tests
- Mocked collaborators for the engine
"""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional
from unittest.mock import MagicMock

import pytest

from cmdtree.managers import CommandExecutor, PromptExecutor
from cmdtree.models import Configuration


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test isolation."""
    temp_path = Path(tempfile.mkdtemp(prefix="cmdtree_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    """Keep the developer's environment from leaking into option defaults."""
    for name in ("CMDTREE_FILE", "CMDTREE_PRINT_COMMANDS", "CMDTREE_PRINT_VARIABLES"):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Config Builder
# =============================================================================


class ConfigBuilder:
    """Helper class for building configurations in tests."""

    def __init__(self, description: str = "Test tasks") -> None:
        self.data: Dict[str, Any] = {
            "description": description,
            "variables": {},
            "commands": {},
        }

    def variable(self, name: str, definition: Any) -> "ConfigBuilder":
        self.data["variables"][name] = definition
        return self

    def command(self, name: str, definition: Any) -> "ConfigBuilder":
        self.data["commands"][name] = definition
        return self

    def options(self, **options: Any) -> "ConfigBuilder":
        self.data["options"] = options
        return self

    def build(self) -> Configuration:
        return Configuration.model_validate(self.data)


@pytest.fixture
def config_builder() -> ConfigBuilder:
    return ConfigBuilder()


@pytest.fixture
def greet_config() -> Configuration:
    """The classic example: a root variable and a command using it."""
    return (
        ConfigBuilder()
        .variable("name", "Dingus")
        .command("greet", {"description": "Say hello", "execute": "echo Hello $name"})
        .build()
    )


# =============================================================================
# Mocked Collaborators
# =============================================================================


@pytest.fixture
def mock_executor() -> MagicMock:
    """A CommandExecutor that records calls instead of spawning processes."""
    executor = MagicMock(spec=CommandExecutor)
    executor.execute.return_value = None
    return executor


@pytest.fixture
def mock_prompt_executor() -> MagicMock:
    return MagicMock(spec=PromptExecutor)


@pytest.fixture
def executed_commands(mock_executor: MagicMock) -> Callable[[], List[str]]:
    """Get the command text of every ``execute`` call on the mock executor, in order."""
    def commands() -> List[str]:
        return [call.args[0] for call in mock_executor.execute.call_args_list]
    return commands


# =============================================================================
# File and Tree Helpers
# =============================================================================


@pytest.fixture
def write_config() -> Callable[..., Path]:
    """Write a configuration file into a directory."""
    def write(directory: Path, text: str, file_name: str = "cmdtree.yaml") -> Path:
        path = directory / file_name
        path.write_text(text, encoding="utf-8")
        return path
    return write


@pytest.fixture
def find_node() -> Callable[..., Any]:
    """Walk a CommandNode tree by a space separated path."""
    def find(root, path: Optional[str]):
        node = root
        for name in (path or "").split():
            node = node.children[name]
        return node
    return find
