"""
High-level Python API for gitpusher.

Example:
    import gitpusher

    gp = gitpusher.GitPusher(token="ghp_...")

    # Push local files and directories as one commit
    result = gp.push(
        "octocat/hello-world",
        ["README.md", "docs/"],
        message="Update docs",
        branch="main",
        progress=lambda pct, msg: print(f"{pct:3d}% {msg}"),
    )
    print(result.commit_sha)

    # Repositories
    for repo in gp.repositories(filter_text="hello"):
        print(repo.full_name)

    gp.create_repository("scratch", private=True, auto_init=True)

    for item in gp.tree("octocat/hello-world"):
        print(item.type, item.path)
"""

import copy
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import load_config
from .domain import (
    FileTask,
    PushRequest,
    PushResult,
    RepoCoordinate,
    TreeItem,
    UploadMode,
)
from .exit_codes import AuthenticationError, ConfigError, ValidationError
from .files import collect_files
from .infra import GitHubClient, GitHubRepo
from .progress import ProgressSink
from .services import PushOptions, PushService, RepositoryService

logger = logging.getLogger(__name__)

Repo = Union[str, RepoCoordinate]


def as_coordinate(repo: Repo) -> RepoCoordinate:
    """Accept 'owner/name' or a RepoCoordinate."""
    if isinstance(repo, RepoCoordinate):
        return repo
    try:
        return RepoCoordinate.parse(repo)
    except ValueError as e:
        raise ValidationError(str(e)) from None


class GitPusher:
    """
    High-level API for gitpusher.

    Wires configuration, the GitHub client and the services together.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[GitHubClient] = None,
        require_token: bool = True,
    ):
        """
        Initialize GitPusher.

        Args:
            token: GitHub token (overrides config/env)
            config: Full config dict (loaded from file if None)
            client: GitHubClient to use (built from config if None)
            require_token: Raise AuthenticationError when no token is available
        """
        self._config = copy.deepcopy(config) if config is not None else load_config()

        if token:
            self._config.setdefault('github', {})['token'] = token

        if client is None:
            if require_token and not self._config.get('github', {}).get('token'):
                raise AuthenticationError(
                    "No GitHub token configured. Pass --token, set GITPUSHER_GITHUB_TOKEN "
                    "or GITHUB_TOKEN, or add github.token to the config file."
                )
            client = GitHubClient.from_config(self._config)

        self._client = client
        self._push_service = PushService(client, PushOptions.from_config(self._config))
        self._repository_service = RepositoryService(client)

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def client(self) -> GitHubClient:
        return self._client

    @property
    def push_service(self) -> PushService:
        return self._push_service

    @property
    def repository_service(self) -> RepositoryService:
        return self._repository_service

    def _push_defaults(self) -> Dict[str, Any]:
        return self._config.get('push', {})

    def build_request(
        self,
        repo: Repo,
        files: List[FileTask],
        message: Optional[str] = None,
        branch: Optional[str] = None,
        mode: Optional[Union[str, UploadMode]] = None,
        author_email: Optional[str] = None,
    ) -> PushRequest:
        """Fill unspecified push settings from the 'push' config section."""
        defaults = self._push_defaults()
        try:
            upload_mode = UploadMode.parse(mode or defaults.get('upload_mode', 'sequential'))
        except ValueError as e:
            if mode:
                raise ValidationError(str(e)) from None
            raise ConfigError(f"push.upload_mode: {e}") from None

        return PushRequest(
            coordinate=as_coordinate(repo),
            files=files,
            message=message or defaults.get('commit_message', ''),
            branch=branch or defaults.get('branch', 'main'),
            mode=upload_mode,
            author_email=author_email or defaults.get('author_email') or None,
        )

    def push_files(
        self,
        repo: Repo,
        files: List[FileTask],
        message: Optional[str] = None,
        branch: Optional[str] = None,
        mode: Optional[Union[str, UploadMode]] = None,
        author_email: Optional[str] = None,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> PushResult:
        """Push in-memory FileTasks as one commit."""
        request = self.build_request(repo, files, message, branch, mode, author_email)
        return self._push_service.push(request, progress=progress, cancel=cancel)

    def push(
        self,
        repo: Repo,
        paths: Iterable,
        dest: Optional[str] = None,
        message: Optional[str] = None,
        branch: Optional[str] = None,
        mode: Optional[Union[str, UploadMode]] = None,
        author_email: Optional[str] = None,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> PushResult:
        """Push local files and directories as one commit."""
        ignore = self._config.get('files', {}).get('ignore_patterns')
        files = collect_files(paths, dest=dest, ignore_patterns=ignore)
        return self.push_files(
            repo, files, message=message, branch=branch, mode=mode,
            author_email=author_email, progress=progress, cancel=cancel,
        )

    def repositories(self, filter_text: Optional[str] = None) -> List[GitHubRepo]:
        """Repositories of the authenticated user."""
        return self._repository_service.list_repositories(filter_text=filter_text)

    def create_repository(self, name: str, **options) -> GitHubRepo:
        """Create a repository. See RepositoryService.create_repository."""
        return self._repository_service.create_repository(name, **options)

    def tree(self, repo: Repo, ref: str = 'HEAD') -> List[TreeItem]:
        """Recursive tree listing of a repository."""
        return self._repository_service.list_tree(as_coordinate(repo), ref=ref)
