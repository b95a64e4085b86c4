"""
Repository service for gitpusher.

Lookups and housekeeping around the push target: listing the user's
repositories, creating a new one, and browsing a repository's tree.
"""

import logging
from typing import List, Optional

from ..domain.objects import RepoCoordinate, TreeItem
from ..exit_codes import ValidationError
from ..infra.github_client import GitHubClient, GitHubRepo

logger = logging.getLogger(__name__)

# Templates offered when creating a repository
GITIGNORE_TEMPLATES = ['Node', 'Python', 'Java', 'Ruby', 'Go', 'Rust', 'C++']
LICENSE_TEMPLATES = [
    'mit', 'apache-2.0', 'gpl-3.0', 'bsd-2-clause', 'bsd-3-clause',
    'mpl-2.0', 'lgpl-3.0', 'agpl-3.0', 'unlicense',
]


class RepositoryService:
    """
    Service for repository discovery and creation.

    Example:
        service = RepositoryService(client)
        for repo in service.list_repositories(filter_text="docs"):
            print(repo.full_name)
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    def list_repositories(self, filter_text: Optional[str] = None) -> List[GitHubRepo]:
        """
        List the authenticated user's repositories (first page only).

        Args:
            filter_text: Keep repos whose full name contains this, ignoring case
        """
        repos = self.client.list_repositories()
        if filter_text:
            needle = filter_text.lower()
            repos = [r for r in repos if needle in r.full_name.lower()]
        return repos

    def create_repository(
        self,
        name: str,
        description: Optional[str] = None,
        private: bool = False,
        auto_init: bool = False,
        gitignore_template: Optional[str] = None,
        license_template: Optional[str] = None,
    ) -> GitHubRepo:
        """
        Create a repository.

        A .gitignore or license template only takes effect together with
        auto_init, so either one switches auto_init on.
        """
        name = (name or '').strip()
        if not name:
            raise ValidationError("Repository name must not be empty")
        if '/' in name:
            raise ValidationError(f"Repository name must not contain '/': {name!r}")

        if (gitignore_template or license_template) and not auto_init:
            logger.debug("Enabling auto_init so templates are applied")
            auto_init = True

        repo = self.client.create_repository(
            name=name,
            description=description,
            private=private,
            auto_init=auto_init,
            gitignore_template=gitignore_template,
            license_template=license_template,
        )
        logger.info(f"Created repository {repo.full_name}")
        return repo

    def list_tree(self, coord: RepoCoordinate, ref: str = 'HEAD') -> List[TreeItem]:
        """Recursive listing of a repository; within each directory, subdirectories come first."""
        items = self.client.get_tree(coord, ref=ref, recursive=True)
        return sorted(items, key=_tree_sort_key)


def _tree_sort_key(item: TreeItem):
    parts = item.path.split('/')
    last = len(parts) - 1
    return [(1 if i == last and item.type != 'tree' else 0, part) for i, part in enumerate(parts)]
