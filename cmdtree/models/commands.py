"""
Command and root configuration models for the cmdtree configuration.

Commands nest arbitrarily deep. A command's variables are visible to itself
and every descendant; inner definitions shadow outer ones of the same name.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from cmdtree.constants import PRINT_COMMANDS_ENV_VAR, PRINT_VARIABLES_ENV_VAR, env_flag
from cmdtree.models.base import ConfigModel, aliases, as_list, as_mapping
from cmdtree.models.variables import VariableDefinition


class Platform(str, Enum):
    """Operating systems a command can be restricted to."""
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"


class CommandDefinition(ConfigModel):
    """
    A node in the command tree.

    Fields:
    - name: Invocation name overriding the mapping key
    - description: Help text
    - alias: Alternative invocation names
    - execute: Template(s) of the shell command(s) to run, in order
    - commands: Subcommands keyed by name
    - variables: Variables scoped to this command and its descendants
    - hidden: Hide from help listings
    - workdir: Working directory template for the rendered command(s)
    - passthrough: Template of a command that receives the remaining
      command-line arguments (instead of `execute`)
    - defer: Template(s) run after the action, whether or not it failed
    - platforms: Operating systems the command exists on (all when empty)

    A command needs an execution template, subcommands, or both; the tree
    builder rejects one that has neither.
    """
    name: Optional[str] = None
    description: Optional[str] = Field(None, validation_alias=aliases("description", "desc"))
    alias: List[str] = Field(default_factory=list, validation_alias=aliases("alias", "aliases"))
    execute: List[str] = Field(
        default_factory=list, validation_alias=aliases("execute", "exec", "action", "run")
    )
    commands: Dict[str, "CommandDefinition"] = Field(
        default_factory=dict, validation_alias=aliases("commands", "cmds")
    )
    variables: Dict[str, VariableDefinition] = Field(
        default_factory=dict, validation_alias=aliases("variables", "vars")
    )
    hidden: bool = False
    workdir: Optional[str] = Field(None, validation_alias=aliases("workdir", "wd"))
    passthrough: Optional[str] = Field(
        None, validation_alias=aliases("passthrough", "pass_through", "pass-through")
    )
    defer: List[str] = Field(default_factory=list, validation_alias=aliases("defer"))
    platforms: List[Platform] = Field(
        default_factory=list, validation_alias=aliases("platforms", "platform")
    )

    @model_validator(mode="before")
    @classmethod
    def expand_shorthand(cls, data: Any) -> Any:
        """`greet: echo hi` (or a list of steps) is shorthand for `greet: {execute: ...}`."""
        if data is None:
            return {}
        if isinstance(data, (str, list)):
            return {"execute": data}
        return data

    @field_validator("execute", "alias", "defer", mode="before")
    @classmethod
    def normalize_list(cls, v: Any) -> List[Any]:
        return as_list(v)

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v: Any) -> List[Any]:
        """Accept one platform or a list, in any case (`Linux`, `macOS`)."""
        return [p.lower() if isinstance(p, str) else p for p in as_list(v)]

    @model_validator(mode="after")
    def validate_action(self) -> "CommandDefinition":
        """Check that the action fields fit together."""
        if self.passthrough is not None and self.execute:
            raise ValueError("A command may have 'execute' or 'passthrough', not both.")
        if self.passthrough is not None and self.commands:
            raise ValueError("A 'passthrough' command cannot have subcommands.")
        if self.defer and not self.has_template:
            raise ValueError("'defer' needs an 'execute' or 'passthrough' action to follow.")
        return self

    @field_validator("commands", "variables", mode="before")
    @classmethod
    def normalize_mapping(cls, v: Any) -> Dict[str, Any]:
        return as_mapping(v)

    @property
    def has_template(self) -> bool:
        """Whether invoking this command runs something itself."""
        return len(self.execute) > 0 or self.passthrough is not None

    @property
    def has_subcommands(self) -> bool:
        return len(self.commands) > 0

    def invocation_name(self, key: str) -> str:
        """Get the name the command is invoked by."""
        return self.name or key

    def available_on(self, platform: Optional[Platform]) -> bool:
        """Whether the command exists on a platform (None: an unrecognized one)."""
        return not self.platforms or platform in self.platforms


class Options(ConfigModel):
    """Output options. Unset options fall back to environment variables."""
    print_commands: bool = Field(
        default_factory=lambda: env_flag(PRINT_COMMANDS_ENV_VAR),
        validation_alias=aliases("print_commands", "printCommands", "print-commands"),
    )
    print_variables: bool = Field(
        default_factory=lambda: env_flag(PRINT_VARIABLES_ENV_VAR),
        validation_alias=aliases("print_variables", "printVariables", "print-variables"),
    )


class Configuration(ConfigModel):
    """Root of the configuration file."""
    description: str = Field("", validation_alias=aliases("description", "desc"))
    variables: Dict[str, VariableDefinition] = Field(
        default_factory=dict, validation_alias=aliases("variables", "vars")
    )
    commands: Dict[str, CommandDefinition] = Field(
        default_factory=dict, validation_alias=aliases("commands", "cmds")
    )
    options: Options = Field(default_factory=Options, validation_alias=aliases("options", "opts"))

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v: Any) -> str:
        return "" if v is None else v

    @field_validator("commands", "variables", mode="before")
    @classmethod
    def normalize_mapping(cls, v: Any) -> Dict[str, Any]:
        return as_mapping(v)

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> Dict[str, Any]:
        return as_mapping(v)
