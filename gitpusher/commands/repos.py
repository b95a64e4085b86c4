"""
Repository commands for gitpusher: list, create and browse.
"""

import click
from rich.console import Console
from rich.tree import Tree

from ..api import as_coordinate
from ..cli_utils import add_common_options, handle_errors, make_pusher
from ..output import emit
from ..services.repository_service import GITIGNORE_TEMPLATES, LICENSE_TEMPLATES

console = Console()


@click.group(name='repos')
def repos_cmd():
    """List, create and browse GitHub repositories."""
    pass


@repos_cmd.command('list')
@click.option('--filter', 'filter_text', default=None,
              help='Only repositories whose full name contains this text')
@add_common_options('token', 'json')
@click.pass_context
@handle_errors
def list_repos(ctx, filter_text, token, json_output):
    """List your repositories (first 100)."""
    pusher = make_pusher(ctx, token=token)
    repos = pusher.repositories(filter_text=filter_text)
    emit(repos, pretty=not json_output,
         columns=['full_name', 'private', 'default_branch', 'description'])


@repos_cmd.command('create')
@click.argument('name')
@click.option('--description', default=None, help='Repository description')
@click.option('--private', is_flag=True, help='Create a private repository')
@click.option('--auto-init', is_flag=True, help='Initialize with a README')
@click.option('--gitignore', 'gitignore_template', type=click.Choice(GITIGNORE_TEMPLATES),
              default=None, help='.gitignore template')
@click.option('--license', 'license_template', type=click.Choice(LICENSE_TEMPLATES),
              default=None, help='License template')
@add_common_options('token', 'json')
@click.pass_context
@handle_errors
def create_repo(ctx, name, description, private, auto_init, gitignore_template,
                license_template, token, json_output):
    """Create a new repository.

    Examples:

    \b
        gitpusher repos create my-site --auto-init --license mit
        gitpusher repos create notes --private --gitignore Python
    """
    pusher = make_pusher(ctx, token=token)
    repo = pusher.create_repository(
        name,
        description=description,
        private=private,
        auto_init=auto_init,
        gitignore_template=gitignore_template,
        license_template=license_template,
    )
    if json_output:
        emit([repo])
    else:
        console.print(f"[green]Created {repo.full_name}[/green] {repo.html_url}")


@repos_cmd.command('tree')
@click.argument('repo')
@click.option('--ref', default='HEAD', help='Branch, tag or tree SHA (default: HEAD)')
@add_common_options('token', 'json')
@click.pass_context
@handle_errors
def tree_repo(ctx, repo, ref, token, json_output):
    """Show the file tree of REPO (OWNER/NAME)."""
    pusher = make_pusher(ctx, token=token)
    coord = as_coordinate(repo)
    items = pusher.tree(coord, ref=ref)

    if json_output:
        emit(items)
        return

    if not items:
        console.print("[yellow]Repository is empty[/yellow]")
        return

    root = Tree(f"[bold]{coord}[/bold] @ {ref}")
    nodes = {'': root}
    for item in items:
        parent, _, name = item.path.rpartition('/')
        branch = nodes.get(parent, root)
        if item.type == 'tree':
            nodes[item.path] = branch.add(f"[blue]{name}/[/blue]")
        else:
            branch.add(name)
    console.print(root)
