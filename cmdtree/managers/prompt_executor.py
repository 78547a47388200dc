"""
PromptExecutor for interactive variable prompts.

Presents one of the four prompt kinds on the terminal through click and
returns the typed result:
- text: str
- select: str
- multi-select: list of str, in configured option order
- confirm: bool
"""
import logging
from typing import Any, Dict, List, Optional

import click

from cmdtree.exceptions import CommandExecutionError, PromptError, ResolutionError
from cmdtree.managers.command_executor import CommandExecutor
from cmdtree.models import ConfirmPrompt, PromptDefinition, PromptKind, SelectPrompt, TextPrompt

logger = logging.getLogger(__name__)


def parse_selection(text: str, count: int) -> List[int]:
    """
    Parse a multi-select answer such as ``"1, 3 4"`` into zero-based indices.

    Args:
        text: Comma and/or space separated option numbers (1-based).
        count: Number of options on offer.

    Returns:
        Sorted, de-duplicated zero-based indices.

    Raises:
        click.BadParameter: If a token is not a number in range (click re-prompts).
    """
    indices = set()
    for token in text.replace(",", " ").split():
        if not token.isdigit() or not 1 <= int(token) <= count:
            raise click.BadParameter(f"'{token}' is not an option number between 1 and {count}.")
        indices.add(int(token) - 1)
    return sorted(indices)


class PromptExecutor:
    """
    Runs prompt definitions against the terminal.

    Usage:
        prompts = PromptExecutor(CommandExecutor())
        environment = prompts.execute(variable.prompt)
    """

    def __init__(self, command_executor: CommandExecutor) -> None:
        """
        Initialize PromptExecutor.

        Args:
            command_executor: Used to source options from commands.
        """
        self.command_executor = command_executor

    def execute(self, prompt: PromptDefinition, env: Optional[Dict[str, str]] = None) -> Any:
        """
        Prompt the user and return their answer.

        Args:
            prompt: The prompt definition; exactly one kind must be configured.
            env: Environment variables for an options command.

        Returns:
            The answer, typed according to the prompt kind.

        Raises:
            PromptSpecificationError: If zero or several prompt kinds are configured.
                Raised before anything is shown.
            ResolutionError: If an options command fails or writes to stderr.
            PromptError: If the prompt is aborted or has no options to offer.
        """
        kind, definition = prompt.variant()
        logger.debug(f"Showing {kind.value} prompt")
        try:
            if kind is PromptKind.TEXT:
                return self._text(definition)
            if kind is PromptKind.SELECT:
                return self._select(definition, env)
            if kind is PromptKind.MULTI_SELECT:
                return self._multi_select(definition, env)
            return self._confirm(definition)
        except click.Abort:
            raise PromptError("Prompt aborted.")

    def _text(self, definition: TextPrompt) -> str:
        if definition.multi_line:
            if definition.description:
                click.echo(definition.description)
            edited = click.edit(definition.default)
            # click.edit returns None when the text is left unchanged
            if edited is None:
                return definition.default
            return edited.rstrip("\n")

        return click.prompt(
            definition.description or "Enter a value",
            default=definition.default,
            show_default=bool(definition.default) and not definition.sensitive,
            hide_input=definition.sensitive,
        )

    def _select(self, definition: SelectPrompt, env: Optional[Dict[str, str]]) -> str:
        options = self.get_options(definition, env)
        self._show_options(definition.description, options)
        number = click.prompt("Choose an option", type=click.IntRange(1, len(options)))
        return options[number - 1]

    def _multi_select(self, definition: SelectPrompt, env: Optional[Dict[str, str]]) -> List[str]:
        options = self.get_options(definition, env)
        self._show_options(definition.description, options)
        indices = click.prompt(
            "Choose options (e.g. 1,3), or leave empty for none",
            default="",
            show_default=False,
            value_proc=lambda text: parse_selection(text, len(options)),
        )
        return [options[index] for index in indices]

    def _confirm(self, definition: ConfirmPrompt) -> bool:
        answer = click.prompt(
            definition.description or "Continue?",
            type=click.Choice([definition.affirmative, definition.negative], case_sensitive=False),
        )
        return answer.lower() == definition.affirmative.lower()

    def _show_options(self, description: str, options: List[str]) -> None:
        if description:
            click.echo(description)
        for number, option in enumerate(options, start=1):
            click.echo(f"  {number}) {option}")

    def get_options(self, definition: SelectPrompt, env: Optional[Dict[str, str]] = None) -> List[str]:
        """
        Get the options of a select prompt, in order.

        The static list wins; otherwise each line of the options command's
        trimmed stdout is an option.

        Raises:
            ResolutionError: If the options command fails; the message is its stderr.
            PromptError: If there are no options.
        """
        if definition.options:
            return list(definition.options)

        try:
            output = self.command_executor.output(definition.options_from, env=env)
        except CommandExecutionError as e:
            raise ResolutionError(str(e))

        options = output.split("\n") if output else []
        if not options:
            raise PromptError(f"Command '{definition.options_from}' produced no options.")
        return options
