"""
VariableResolver for computing an invocation's variable bag.

Each visible variable is resolved from the first source that applies:
1. Flag override supplied on the command line
2. Literal value
3. Value-from command (trimmed stdout; any stderr output is a failure)
4. Prompt
5. Nothing: an error if the variable is required, otherwise None
"""
import logging
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

import click

from cmdtree.constants import SENSITIVE_MASK
from cmdtree.exceptions import CommandExecutionError, MissingVariableError, ResolutionError
from cmdtree.managers.command_executor import CommandExecutor
from cmdtree.managers.command_tree import CommandNode
from cmdtree.managers.prompt_executor import PromptExecutor
from cmdtree.managers.template_renderer import format_value
from cmdtree.models import Options, VariableDefinition, VariableSource

logger = logging.getLogger(__name__)


class FlagOverrides(Mapping[str, str]):
    """
    Flag values supplied on the command line, keyed by flag name.

    A flag that was not supplied is absent, so ``None`` from :meth:`get` means
    "not supplied" while ``""`` means "supplied as an empty string".
    """

    def __init__(self, values: Optional[Mapping[str, Optional[str]]] = None) -> None:
        self._values: Dict[str, str] = {
            flag: value for flag, value in (values or {}).items() if value is not None
        }

    @classmethod
    def merge(cls, scopes: Iterable[Mapping[str, Optional[str]]]) -> "FlagOverrides":
        """
        Combine per-command flag values, closest command first.

        The first scope that supplied a flag wins.
        """
        merged: Dict[str, str] = {}
        for scope in scopes:
            for flag, value in scope.items():
                if value is not None and flag not in merged:
                    merged[flag] = value
        return cls(merged)

    def __getitem__(self, flag: str) -> str:
        return self._values[flag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"FlagOverrides({self._values!r})"


class VariableResolver:
    """
    Resolves the variables visible at a command node.

    Usage:
        executor = CommandExecutor()
        resolver = VariableResolver(executor, PromptExecutor(executor))
        variables = resolver.resolve(node, FlagOverrides({"name": "Godzilla"}))
    """

    def __init__(
        self,
        command_executor: CommandExecutor,
        prompt_executor: PromptExecutor,
        options: Optional[Options] = None,
    ) -> None:
        """
        Initialize VariableResolver.

        Args:
            command_executor: Runs value-from commands.
            prompt_executor: Runs prompts.
            options: Output options (``print_variables``).
        """
        self.command_executor = command_executor
        self.prompt_executor = prompt_executor
        self.options = options or Options()

    def resolve(self, node: CommandNode, overrides: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """
        Resolve every variable visible at a node.

        Variables are resolved outermost scope first, in declaration order.
        Commands run for value-from variables and options see the variables
        resolved before them as environment variables.

        Args:
            node: The command node being invoked.
            overrides: Flag values supplied on the command line.

        Returns:
            The variable bag: variable name to str, bool, list of str, or None.

        Raises:
            ResolutionError: If any variable cannot be resolved.
        """
        overrides = overrides or FlagOverrides()
        variables: Dict[str, Any] = {}
        env: Dict[str, str] = {}
        visible = node.visible_variables()

        for key, definition in visible.items():
            value = self.resolve_variable(key, definition, overrides, env)
            variables[key] = value
            if value is not None:
                env[definition.env_name(key)] = format_value(value)

        if self.options.print_variables:
            self._print_variables(variables, visible)

        return variables

    def resolve_variable(
        self,
        key: str,
        definition: VariableDefinition,
        overrides: Mapping[str, str],
        env: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Resolve a single variable.

        Args:
            key: Variable name.
            definition: Its definition.
            overrides: Flag values supplied on the command line.
            env: Environment for value-from and options commands.

        Returns:
            The resolved value, or None for an optional variable without a source.

        Raises:
            ResolutionError: If the variable's source fails, or it is required
                and has no source.
        """
        flag = definition.flag_name(key)
        if flag in overrides:
            logger.debug(f"Variable '{key}' set by flag --{flag}")
            return overrides[flag]

        source = definition.source
        logger.debug(f"Variable '{key}' resolved from {source.value}")

        if source is VariableSource.LITERAL:
            return definition.value

        if source is VariableSource.COMMAND:
            try:
                return self.command_executor.output(definition.value_from, env=env)
            except CommandExecutionError as e:
                raise ResolutionError(str(e), key)

        if source is VariableSource.PROMPT:
            try:
                return self.prompt_executor.execute(definition.prompt, env=env)
            except ResolutionError as e:
                e.variable = key
                raise

        if definition.required:
            raise MissingVariableError(key)
        return None

    def environment(self, node: CommandNode, variables: Mapping[str, Any]) -> Dict[str, str]:
        """
        Build the environment variables exported to a node's commands.

        Args:
            node: The command node being invoked.
            variables: Its resolved variable bag.

        Returns:
            Environment variable name to text value; unset variables are left out.
        """
        env: Dict[str, str] = {}
        for key, definition in node.visible_variables().items():
            value = variables.get(key)
            if value is not None:
                env[definition.env_name(key)] = format_value(value)
        return env

    def _print_variables(self, variables: Mapping[str, Any], visible: Mapping[str, VariableDefinition]) -> None:
        for key, value in variables.items():
            shown = SENSITIVE_MASK if visible[key].is_sensitive else format_value(value)
            click.echo(f"{key}={click.style(shown, fg='green')}")
