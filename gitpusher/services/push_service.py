"""
Push orchestration for gitpusher.

Runs one push end to end: resolve the branch, upload blobs, build the
tree, build the commit, move the branch. Used by `gitpusher push` and by
the GitPusher API.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..domain.push import PushRequest, PushResult, UploadMode
from ..exit_codes import ConfigError
from ..infra.github_client import GitHubClient
from ..progress import ProgressSink, ProgressTracker
from .object_service import CommitBuilder, DEFAULT_AUTHOR_NAME, TreeBuilder
from .ref_service import RefResolver, RefUpdater
from .upload_service import (
    BlobUploader,
    DEFAULT_BATCH_SIZE,
    UPLOAD_PROGRESS_END,
    UPLOAD_PROGRESS_START,
    check_cancelled,
    create_scheduler,
)

logger = logging.getLogger(__name__)


@dataclass
class PushOptions:
    """Tunables for the push pipeline."""
    batch_size: int = DEFAULT_BATCH_SIZE
    author_name: str = DEFAULT_AUTHOR_NAME
    max_retries: int = 3
    retry_delay: float = 1.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'PushOptions':
        """Build from the 'push' config section."""
        push = config.get('push', {})
        ref_update = push.get('ref_update', {})
        try:
            options = cls(
                batch_size=int(push.get('batch_size', DEFAULT_BATCH_SIZE)),
                author_name=push.get('author_name') or DEFAULT_AUTHOR_NAME,
                max_retries=int(ref_update.get('max_retries', 3)),
                retry_delay=float(ref_update.get('retry_delay_seconds', 1.0)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid push configuration: {e}") from e

        if options.batch_size < 1:
            raise ConfigError(f"push.batch_size must be at least 1, got {options.batch_size}")
        if options.max_retries < 0:
            raise ConfigError("push.ref_update.max_retries must not be negative")
        return options


class PushService:
    """
    Publishes a set of files to a branch as a single commit.

    Example:
        service = PushService(GitHubClient(token="ghp_..."))
        request = PushRequest(
            coordinate=RepoCoordinate("octocat", "hello-world"),
            files=[FileTask("docs/index.md", b"# Hello")],
            message="Add docs",
            branch="main",
        )
        result = service.push(request, progress=lambda pct, msg: print(pct, msg))
        print(result.commit_sha)
    """

    def __init__(
        self,
        client: GitHubClient,
        options: Optional[PushOptions] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize PushService.

        Args:
            client: GitHub client
            options: Pipeline options (defaults if None)
            sleep: Sleep used between ref update retries
        """
        self.client = client
        self.options = options or PushOptions()
        self.resolver = RefResolver(client)
        self.uploader = BlobUploader(client)
        self.tree_builder = TreeBuilder(client)
        self.commit_builder = CommitBuilder(client, author_name=self.options.author_name)
        self.ref_updater = RefUpdater(
            client,
            resolver=self.resolver,
            max_retries=self.options.max_retries,
            retry_delay=self.options.retry_delay,
            sleep=sleep,
        )
        self.last_result: Optional[PushResult] = None

    def push(
        self,
        request: PushRequest,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> PushResult:
        """
        Run the pipeline for one push request.

        Args:
            request: What to push and where
            progress: Called with (percentage, message); may be called from
                worker threads in concurrent mode
            cancel: Set it to stop the push before its next step

        Returns:
            PushResult for the new commit

        Raises:
            ValidationError: before any network call, if the request is malformed
            PushCancelledError: if cancel was set
            GitHubAPIError: if any remote call fails; objects already created
                stay on the remote unreferenced
        """
        request.validate()
        tracker = ProgressTracker(progress)
        coord = request.coordinate
        mode = UploadMode.parse(request.mode)

        check_cancelled(cancel)
        tracker(5, "Getting repository information...")
        resolved = self.resolver.resolve(coord, request.branch)
        base_commit = self.client.get_commit(coord, resolved.base_sha)

        check_cancelled(cancel)
        tracker(UPLOAD_PROGRESS_START, "Processing files...")
        scheduler = create_scheduler(
            mode, self.uploader, batch_size=self.options.batch_size, cancel=cancel
        )
        blobs = scheduler.schedule(coord, request.files, tracker)
        logger.info(f"Uploaded {len(blobs)} blobs to {coord} ({mode.value})")

        check_cancelled(cancel)
        tracker(UPLOAD_PROGRESS_END, "Creating tree...")
        tree_sha = self.tree_builder.build(coord, base_commit.tree_sha, blobs)

        check_cancelled(cancel)
        tracker(80, "Creating commit...")
        commit_sha = self.commit_builder.build(
            coord, request.message, tree_sha, resolved.base_sha, request.author_email
        )

        check_cancelled(cancel)
        tracker(90, f"Updating branch: {resolved.ref_name}...")
        update = self.ref_updater.update(coord, resolved.ref_name, commit_sha)

        tracker(100, "Successfully pushed files to GitHub!")
        logger.info(f"Pushed {commit_sha[:7]} to {coord}@{resolved.ref_name}")

        result = PushResult(
            coordinate=coord,
            branch=resolved.ref_name,
            commit_sha=commit_sha,
            tree_sha=tree_sha,
            base_sha=resolved.base_sha,
            blobs=blobs,
            created_branch=update.created,
            from_default_branch=resolved.from_default,
            ref_attempts=update.attempts,
        )
        self.last_result = result
        return result
