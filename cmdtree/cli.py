"""
Entry point for the cmdtree CLI.

Loads the configuration, builds the command tree and dispatches. When no
configuration file exists, a bootstrap CLI offering only ``init`` is used.
"""
from typing import Optional

import click

from cmdtree import __version__
from cmdtree.commands.init import init
from cmdtree.exceptions import ConfigurationError
from cmdtree.loader import ConfigLoader
from cmdtree.managers import (
    CommandExecutor,
    CommandTreeBuilder,
    PromptExecutor,
    TemplateRenderer,
    VariableResolver,
)
from cmdtree.models import Configuration


def create_cli(
    config: Configuration,
    executor: Optional[CommandExecutor] = None,
    prompt_executor: Optional[PromptExecutor] = None,
) -> click.Group:
    """
    Wire the engine together and build the CLI for a configuration.

    Args:
        config: The loaded configuration.
        executor: Command executor (defaults to the bash executor).
        prompt_executor: Prompt executor (defaults to terminal prompts).

    Returns:
        The root click group.

    Raises:
        ConfigurationError: If the command tree is invalid.
    """
    executor = executor or CommandExecutor()
    prompt_executor = prompt_executor or PromptExecutor(executor)
    resolver = VariableResolver(executor, prompt_executor, config.options)
    builder = CommandTreeBuilder(config, resolver, TemplateRenderer(), executor)
    return builder.build_cli()


@click.group(name="cmdtree")
@click.version_option(version=__version__, prog_name="cmdtree")
def bootstrap():
    """No configuration file was found. Run `cmdtree init` to create one."""
    pass


bootstrap.add_command(init)


def main(loader: Optional[ConfigLoader] = None) -> None:
    """Run the CLI for the discovered configuration file."""
    loader = loader or ConfigLoader()
    if loader.config_path is None:
        bootstrap()
        return

    try:
        cli = create_cli(loader.load())
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    cli()


if __name__ == "__main__":
    main()
