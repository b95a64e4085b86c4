"""
Common CLI utilities and decorators for consistent command behavior.
"""

import re
import sys
from functools import wraps

import click

from .exit_codes import INTERRUPTED, CommandError
from .output import emit_error

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def _error_type(error: Exception) -> str:
    """CamelCase exception name -> snake_case error type (GitHubAPIError -> git_hub_api_error)."""
    return _CAMEL_BOUNDARY.sub('_', type(error).__name__).lower()


def handle_errors(func):
    """
    Decorator that turns gitpusher errors into exit codes.

    CommandError subclasses exit with their own code. With --json the error
    is written to stderr as a JSON object; otherwise as a red message.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        json_output = kwargs.get('json_output', False)
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except CommandError as e:
            if json_output:
                context = {'exit_code': e.exit_code}
                status_code = getattr(e, 'status_code', None)
                if status_code is not None:
                    context['status'] = status_code
                emit_error(str(e), type=_error_type(e), context=context)
            else:
                click.secho(f"Error: {e}", fg='red', err=True)
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            click.secho("Interrupted by user", fg='red', err=True)
            sys.exit(INTERRUPTED)

    return wrapper


# Standard options that many commands share
common_options = {
    'json': click.option('--json', 'json_output', is_flag=True,
                         help='Output as JSONL'),
    'token': click.option('--token', envvar='GITPUSHER_TOKEN', default=None,
                          help='GitHub token (default: config / GITHUB_TOKEN)'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Suppress progress output'),
}


def make_pusher(ctx: click.Context, token=None, require_token: bool = True,
                overrides=None):
    """
    Build a GitPusher from the context's config (and injected client, if any).

    overrides are merged over a copy of the config; the context's own dict
    is left untouched.
    """
    from .api import GitPusher
    from .config import load_config, merge_configs

    obj = ctx.find_root().obj or {}
    config = obj.get('config')
    if overrides:
        config = merge_configs(config if config is not None else load_config(), overrides)
    return GitPusher(
        token=token,
        config=config,
        client=obj.get('client'),
        require_token=require_token,
    )


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('json', 'token')
        def my_command(json_output, token):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
