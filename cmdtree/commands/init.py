from pathlib import Path

import click

from cmdtree.constants import CONFIG_FILE_NAMES, DEFAULT_CONFIG_FILE


@click.command()
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing configuration file without asking.",
)
def init(force):
    """Creates a starter cmdtree.yaml in the current directory."""
    config_file = Path(CONFIG_FILE_NAMES[0])
    if config_file.exists() and not force:
        click.confirm(
            f"A configuration file already exists at {config_file.resolve()}. Do you want to overwrite it?",
            abort=True,
        )

    try:
        config_file.write_text(DEFAULT_CONFIG_FILE, encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Could not write configuration file at {config_file.resolve()}: {e}")
    click.echo(f"Configuration file created at {config_file.resolve()}")
