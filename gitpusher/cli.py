#!/usr/bin/env python3

import click

from . import __version__
from .config import configure_logging, load_config
from .exit_codes import ConfigError
from .commands.config import config_cmd
from .commands.push import push_cmd
from .commands.repos import repos_cmd


@click.group()
@click.version_option(version=__version__)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Config file to use instead of ~/.gitpusher/config.*')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """gitpusher - Publish files to GitHub without a local git client.

    Uploads files as blobs, builds a tree on top of the branch head,
    commits it and moves the branch, all through the GitHub API.
    """
    ctx.ensure_object(dict)
    try:
        if 'config' not in ctx.obj:
            ctx.obj['config'] = load_config(config_path)
        configure_logging(ctx.obj['config'], verbose=verbose)
    except ConfigError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        ctx.exit(e.exit_code)


cli.add_command(push_cmd)
cli.add_command(repos_cmd)
cli.add_command(config_cmd)


def main():
    cli()


if __name__ == "__main__":
    main()
