import json

import click

from ..cli_utils import handle_errors
from ..config import get_config_path, get_default_config, save_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSON")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.option("--show-token", is_flag=True, help="Print the GitHub token instead of masking it")
@click.pass_context
def show_config(ctx, pretty, path, show_token):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON. The GitHub token is masked
    unless --show-token is given.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = json.loads(json.dumps(ctx.find_root().obj['config']))
    github = config.get('github', {})
    if github.get('token') and not show_token:
        github['token'] = '***'

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@handle_errors
def init_config(force):
    """Write a default configuration file to ~/.gitpusher/."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path} (use --force to overwrite)", err=True)
        return

    written = save_config(get_default_config(), config_path)
    click.echo(f"Default configuration written to {written}")
