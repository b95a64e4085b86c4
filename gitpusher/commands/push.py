"""
Push command for gitpusher.

Publishes local files and directories to a GitHub branch as one commit,
using the Git Data API instead of a local git client.
"""

import threading

import click
from rich.console import Console

from ..cli_utils import add_common_options, handle_errors, make_pusher
from ..domain import UploadMode
from ..files import collect_files
from ..output import emit
from ..progress import ProgressReporter, install_interrupt_handler

console = Console(stderr=True)


@click.command('push')
@click.argument('repo')
@click.argument('paths', nargs=-1, required=True)
@click.option('-m', '--message', default=None, help='Commit message (default from config)')
@click.option('-b', '--branch', default=None,
              help="Target branch; created from the default branch if it doesn't exist")
@click.option('--dest', default=None, help='Directory inside the repository to upload into')
@click.option('--sequential/--concurrent', 'sequential', default=None,
              help='Upload one file at a time, or in concurrent batches')
@click.option('--batch-size', type=click.IntRange(min=1), default=None,
              help='Files per concurrent batch (default: 3)')
@click.option('--email', 'author_email', default=None, help='Author email for the commit')
@click.option('--dry-run', is_flag=True, help='Show what would be pushed without contacting GitHub')
@add_common_options('token', 'json', 'quiet')
@click.pass_context
@handle_errors
def push_cmd(ctx, repo, paths, message, branch, dest, sequential, batch_size,
             author_email, dry_run, token, json_output, quiet):
    """Push files to a GitHub repository as a single commit.

    REPO: Target repository as OWNER/NAME

    PATHS: Files and directories to publish. Directories keep their own
    name as the top-level folder, like a browser folder upload.

    Examples:

    \b
        gitpusher push octocat/hello-world README.md
        gitpusher push octocat/hello-world site/ -b gh-pages -m "Publish site"
        gitpusher push octocat/hello-world assets/ --dest static --concurrent
    """
    overrides = {'push': {'batch_size': batch_size}} if batch_size is not None else None

    mode = None
    if sequential is not None:
        mode = UploadMode.SEQUENTIAL if sequential else UploadMode.CONCURRENT

    pusher = make_pusher(ctx, token=token, require_token=not dry_run, overrides=overrides)
    ignore = pusher.config.get('files', {}).get('ignore_patterns')
    files = collect_files(paths, dest=dest, ignore_patterns=ignore)

    request = pusher.build_request(
        repo, files, message=message, branch=branch, mode=mode, author_email=author_email
    )
    request.validate()

    if dry_run:
        if json_output:
            emit({'path': task.normalized_path, 'size': task.size, 'kind': task.kind.value}
                 for task in request.files)
        else:
            emit(
                ({'path': task.normalized_path, 'size': task.size} for task in request.files),
                pretty=True,
                columns=['path', 'size'],
            )
            console.print(
                f"Would push {len(request.files)} files ({request.total_size} bytes) to "
                f"{request.coordinate}@{request.branch} ({request.mode.value})"
            )
        return

    reporter = ProgressReporter(enabled=not quiet)
    cancel = threading.Event()
    restore = install_interrupt_handler(cancel)
    try:
        result = pusher.push_service.push(request, progress=reporter, cancel=cancel)
    except Exception:
        reporter.close()
        raise
    finally:
        restore()

    if json_output:
        emit([result])
        return

    note = ""
    if result.created_branch:
        note = " (new branch)"
    console.print(
        f"[green]Pushed {result.files_pushed} files to {result.coordinate}@{result.branch}"
        f"{note}[/green] commit [bold]{result.commit_sha[:7]}[/bold]"
    )
