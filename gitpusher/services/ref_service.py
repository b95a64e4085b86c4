"""
Branch resolution and update for gitpusher.

RefResolver turns a branch name into the commit a push builds on, falling
back to the default branch when the requested one does not exist yet.

RefUpdater moves the branch to the new commit. GitHub offers no native
compare-and-swap, so the update is a loop: read the current head, send a
conditional update, and on a conflict wait and start over.
"""

import logging
import time
from typing import Callable, Optional

from ..domain.objects import RepoCoordinate
from ..domain.push import RefUpdateResult, ResolvedRef
from ..infra.github_client import (
    GitHubAPIError,
    GitHubClient,
    RefConflictError,
    RefUpdateOutcome,
)

logger = logging.getLogger(__name__)


class RefResolver:
    """Maps a branch name to the commit SHA a push should build on."""

    def __init__(self, client: GitHubClient):
        self.client = client

    def resolve(self, coord: RepoCoordinate, branch: str) -> ResolvedRef:
        """
        Resolve a branch.

        If the branch exists, its head is the base. Otherwise the base is the
        head of the repository's default branch, while ref_name stays the
        requested branch so the update step creates it.

        Raises:
            GitHubAPIError: on any failure other than the branch being absent
        """
        ref = self.client.get_ref(coord, branch)
        if ref is not None:
            return ResolvedRef(base_sha=ref.sha, ref_name=branch, source_branch=branch)

        default_branch = self.client.get_default_branch(coord)
        logger.info(f"Branch '{branch}' not found in {coord}; basing it on '{default_branch}'")

        default_ref = self.client.get_ref(coord, default_branch)
        if default_ref is None:
            raise GitHubAPIError(
                f"Default branch '{default_branch}' of {coord} has no commits",
                status_code=404,
            )

        return ResolvedRef(
            base_sha=default_ref.sha,
            ref_name=branch,
            source_branch=default_branch,
            from_default=True,
        )


class RefUpdater:
    """
    Advances (or creates) a branch with optimistic concurrency.

    Example:
        updater = RefUpdater(client, RefResolver(client))
        result = updater.update(coord, "main", new_commit_sha)
        print(result.attempts, result.created)
    """

    def __init__(
        self,
        client: GitHubClient,
        resolver: Optional[RefResolver] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize RefUpdater.

        Args:
            client: GitHub client
            resolver: Used to re-read the branch head before each attempt
            max_retries: Retries allowed after a conflicting update
            retry_delay: Base delay; retry n waits retry_delay * n seconds
            sleep: Sleep function (injectable for tests)
        """
        self.client = client
        self.resolver = resolver or RefResolver(client)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep

    def backoff(self, attempt: int) -> float:
        """Delay before the retry following zero-based attempt `attempt`."""
        return self.retry_delay * (attempt + 1)

    def _create(self, coord: RepoCoordinate, ref_name: str, new_sha: str) -> bool:
        """Create the branch. False if it already exists."""
        logger.info(f"Creating branch '{ref_name}' in {coord}")
        try:
            self.client.create_ref(coord, ref_name, new_sha)
        except GitHubAPIError as e:
            if e.status_code == 422:
                return False
            raise
        return True

    def update(self, coord: RepoCoordinate, ref_name: str, new_sha: str) -> RefUpdateResult:
        """
        Point ref_name at new_sha.

        Returns:
            RefUpdateResult describing whether the branch was created and
            how many update attempts it took

        Raises:
            RefConflictError: if every attempt conflicted
            GitHubAPIError: on any other failure
        """
        attempt = 0
        while True:
            latest = self.resolver.resolve(coord, ref_name)
            if latest.from_default:
                outcome = RefUpdateOutcome.NOT_FOUND
            else:
                outcome = self.client.update_ref(
                    coord, ref_name, new_sha, previous_sha=latest.base_sha, force=True
                )

            if outcome is RefUpdateOutcome.UPDATED:
                logger.debug(f"Updated {coord}@{ref_name} -> {new_sha[:7]}")
                return RefUpdateResult(ref_name=ref_name, sha=new_sha, attempts=attempt + 1)

            if outcome is RefUpdateOutcome.NOT_FOUND:
                if self._create(coord, ref_name, new_sha):
                    return RefUpdateResult(
                        ref_name=ref_name, sha=new_sha, created=True, attempts=attempt + 1
                    )

            # Conflict, or the branch appeared before we could create it
            if attempt >= self.max_retries:
                raise RefConflictError(
                    f"Branch '{ref_name}' in {coord} kept changing; "
                    f"gave up after {attempt + 1} attempts",
                    status_code=422,
                )

            delay = self.backoff(attempt)
            logger.warning(
                f"Branch '{ref_name}' moved during update, retrying in {delay:g}s "
                f"(retry {attempt + 1} of {self.max_retries})"
            )
            self.sleep(delay)
            attempt += 1
