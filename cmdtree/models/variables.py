"""
Variable and prompt models for the cmdtree configuration.

A variable has at most one value source (literal value, value-from command,
or prompt). A prompt has exactly one kind (text, select, multi-select,
confirm); that rule is only enforced when the prompt actually runs, so a
flag override can bypass a misconfigured prompt.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field, field_validator, model_validator

from cmdtree.constants import DEFAULT_CONFIRM_AFFIRMATIVE, DEFAULT_CONFIRM_NEGATIVE
from cmdtree.exceptions import PromptSpecificationError
from cmdtree.models.base import ConfigModel, aliases, as_list


class VariableSource(str, Enum):
    """Where a variable's value comes from when no flag override is given."""
    LITERAL = "value"
    COMMAND = "value_from"
    PROMPT = "prompt"
    NONE = "none"


class PromptKind(str, Enum):
    """The four supported prompt kinds."""
    TEXT = "text"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    CONFIRM = "confirm"


class TextPrompt(ConfigModel):
    """Free text entry, single or multi-line."""
    description: str = Field("", validation_alias=aliases("description", "desc", "message"))
    default: str = ""
    multi_line: bool = Field(False, validation_alias=aliases("multi_line", "multiLine", "multi-line"))
    sensitive: bool = False


class SelectPrompt(ConfigModel):
    """Single or multiple choice from a static list or the output of a command.

    The static list wins when both are configured.
    """
    description: str = Field("", validation_alias=aliases("description", "desc", "message"))
    options: List[str] = Field(default_factory=list, validation_alias=aliases("options", "opts"))
    options_from: Optional[str] = Field(
        None, validation_alias=aliases("options_from", "optionsFrom", "options-from")
    )

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> List[Any]:
        """Accept a single option and stringify scalars (YAML turns `1` into an int)."""
        return [str(option) for option in as_list(v)]

    @model_validator(mode="after")
    def validate_option_source(self) -> "SelectPrompt":
        """Require a static option list or an options command."""
        if not self.options and not self.options_from:
            raise ValueError("Select prompts need either 'options' or 'options_from'.")
        return self


class ConfirmPrompt(ConfigModel):
    """Yes/no question with configurable labels; resolves to a boolean."""
    description: str = Field("", validation_alias=aliases("description", "desc", "message"))
    affirmative: str = DEFAULT_CONFIRM_AFFIRMATIVE
    negative: str = DEFAULT_CONFIRM_NEGATIVE


class PromptDefinition(ConfigModel):
    """Discriminated union of the four prompt kinds."""
    text: Optional[TextPrompt] = None
    select: Optional[SelectPrompt] = None
    multi_select: Optional[SelectPrompt] = Field(
        None, validation_alias=aliases("multi_select", "multiSelect", "multi-select")
    )
    confirm: Optional[ConfirmPrompt] = None

    def populated_kinds(self) -> List[PromptKind]:
        """List the prompt kinds that are configured, in declaration order."""
        return [kind for kind in PromptKind if getattr(self, kind.value) is not None]

    def variant(self) -> Tuple[PromptKind, ConfigModel]:
        """Get the single configured prompt kind and its definition.

        Returns:
            Tuple of (kind, kind-specific definition).

        Raises:
            PromptSpecificationError: If zero or more than one kind is configured.
        """
        kinds = self.populated_kinds()
        if not kinds:
            raise PromptSpecificationError("No prompt specified.")
        if len(kinds) > 1:
            names = ", ".join(kind.value for kind in kinds)
            raise PromptSpecificationError(
                f"Only one prompt type may be specified (found: {names})."
            )
        return kinds[0], getattr(self, kinds[0].value)

    @property
    def is_sensitive(self) -> bool:
        """Whether the prompt collects a value that must not be echoed."""
        return self.text is not None and self.text.sensitive


class VariableDefinition(ConfigModel):
    """
    A variable visible to a command and its descendants.

    Fields:
    - description: Help text for the variable's flag
    - value: Literal value
    - value_from: Shell command whose trimmed stdout is the value
    - prompt: Interactive prompt asking the user for the value
    - required: Fail when none of the above is set and no flag is given
    - flag: Flag name overriding the variable key
    - short: One-character short flag (`-c`)
    - position: Take the value from a positional argument instead of a flag
      (1 is the first positional argument)
    - env: Environment variable name used when exporting the value
    """
    description: Optional[str] = Field(None, validation_alias=aliases("description", "desc"))
    value: Optional[Any] = None
    value_from: Optional[str] = Field(
        None, validation_alias=aliases("value_from", "valueFrom", "value-from")
    )
    prompt: Optional[PromptDefinition] = None
    required: bool = False
    flag: Optional[str] = Field(None, validation_alias=aliases("flag", "arg"))
    short: Optional[str] = None
    position: Optional[int] = Field(None, ge=1)
    env: Optional[str] = Field(None, validation_alias=aliases("env", "environment_variable"))

    @model_validator(mode="before")
    @classmethod
    def expand_shorthand(cls, data: Any) -> Any:
        """`name: Dingus` is shorthand for `name: {value: Dingus}`."""
        if data is None:
            return {}
        if not isinstance(data, dict):
            return {"value": data}
        return _expand_argument(data)

    @field_validator("short")
    @classmethod
    def validate_short(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not (len(v) == 1 and v.isalnum()):
            raise ValueError("'short' must be a single letter or digit.")
        return v

    @model_validator(mode="after")
    def validate_single_source(self) -> "VariableDefinition":
        """Allow at most one value source and one kind of argument."""
        sources = [
            name for name, configured in (
                ("value", self.value is not None),
                ("value_from", self.value_from is not None),
                ("prompt", self.prompt is not None),
            ) if configured
        ]
        if len(sources) > 1:
            raise ValueError(
                f"A variable may have only one value source, got: {', '.join(sources)}."
            )
        if self.position is not None and (self.flag or self.short):
            raise ValueError("A positional variable cannot also have a 'flag' or 'short' name.")
        return self

    @property
    def source(self) -> VariableSource:
        """The configured value source."""
        if self.value is not None:
            return VariableSource.LITERAL
        if self.value_from is not None:
            return VariableSource.COMMAND
        if self.prompt is not None:
            return VariableSource.PROMPT
        return VariableSource.NONE

    @property
    def is_sensitive(self) -> bool:
        return self.prompt is not None and self.prompt.is_sensitive

    @property
    def is_positional(self) -> bool:
        return self.position is not None

    def flag_name(self, key: str) -> str:
        """Get the command-line flag name for this variable."""
        return self.flag or key

    def env_name(self, key: str) -> str:
        """Get the environment variable name for this variable."""
        return self.env or key


def _expand_argument(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten `arg: {long: name, short: n}` and `arg: {position: 1}` into the variable."""
    for key in ("flag", "arg"):
        argument = data.get(key)
        if not isinstance(argument, dict):
            continue
        data = {k: v for k, v in data.items() if k != key}
        if "long" in argument:
            data["flag"] = argument["long"]
        for name in ("short", "position"):
            if name in argument:
                data[name] = argument[name]
        unknown = set(argument) - {"long", "short", "position"}
        if unknown:
            raise ValueError(f"Unknown argument setting(s): {', '.join(sorted(unknown))}.")
    return data
