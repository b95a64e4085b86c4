"""
Tree and commit construction for gitpusher.
"""

import logging
from typing import List, Optional

from ..domain.objects import Blob, RepoCoordinate, TreeEntry
from ..infra.github_client import GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "GitPusher"


class TreeBuilder:
    """Overlays uploaded blobs onto a base tree."""

    def __init__(self, client: GitHubClient):
        self.client = client

    @staticmethod
    def entries(blobs: List[Blob]) -> List[TreeEntry]:
        """Regular-file tree entries with normalized paths."""
        return [TreeEntry.from_blob(blob) for blob in blobs]

    def build(self, coord: RepoCoordinate, base_tree_sha: Optional[str],
              blobs: List[Blob]) -> str:
        """
        Create a tree from base_tree_sha plus the given blobs.

        Paths not listed keep whatever the base tree has for them.

        Returns:
            New tree SHA
        """
        entries = self.entries(blobs)
        tree_sha = self.client.create_tree(coord, base_tree_sha, entries)
        logger.debug(f"Created tree {tree_sha[:7]} with {len(entries)} entries on {base_tree_sha}")
        return tree_sha


class CommitBuilder:
    """Wraps a tree in a single-parent commit."""

    def __init__(self, client: GitHubClient, author_name: str = DEFAULT_AUTHOR_NAME):
        self.client = client
        self.author_name = author_name

    def build(self, coord: RepoCoordinate, message: str, tree_sha: str,
              parent_sha: str, author_email: Optional[str] = None) -> str:
        """
        Create the commit.

        The author is the tool itself, paired with the requester's email.
        Without an email GitHub attributes the commit to the token's owner.

        Returns:
            New commit SHA
        """
        author = None
        if author_email:
            author = {'name': self.author_name, 'email': author_email}

        commit_sha = self.client.create_commit(
            coord, message, tree_sha, [parent_sha], author=author
        )
        logger.debug(f"Created commit {commit_sha[:7]} (parent {parent_sha[:7]})")
        return commit_sha
