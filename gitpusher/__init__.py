"""
gitpusher - Publish files to GitHub through the Git Data API.

gitpusher turns a set of local files into a single commit on a GitHub
branch without a local clone: blobs are uploaded, a tree is built on top
of the branch head, a commit is created and the branch ref is moved.

Quick Start:
    import gitpusher

    gp = gitpusher.GitPusher(token="ghp_...")

    # Push files and directories as one commit
    result = gp.push("octocat/hello-world", ["site/"], branch="gh-pages",
                     message="Publish site")
    print(result.commit_sha)

    # Concurrent uploads in batches of three
    gp.push("octocat/hello-world", ["assets/"], mode="concurrent")

Domain Objects:
    RepoCoordinate - owner/name of a repository
    FileTask - A local file to publish
    PushRequest - Everything one push needs
    PushResult - What a push produced

Services:
    PushService - The push pipeline
    RepositoryService - List, create and browse repositories

Progress:
    Pushes report (percentage, message) pairs: 5 while resolving the
    branch, 10-70 while uploading blobs, 70 tree, 80 commit, 90 ref
    update and 100 on success.
"""

__version__ = "0.1.0"

# High-level API
from .api import GitPusher, as_coordinate

# Domain objects
from .domain import (
    RepoCoordinate,
    FileTask,
    FileKind,
    UploadMode,
    PushRequest,
    PushResult,
    TreeItem,
)

# Services (for advanced use)
from .services import (
    PushService,
    PushOptions,
    RepositoryService,
)

# Errors
from .exit_codes import (
    CommandError,
    ValidationError,
    ConfigError,
    AuthenticationError,
    PushCancelledError,
)
from .infra import GitHubAPIError, RefConflictError

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # High-level API
    "GitPusher",
    "as_coordinate",
    # Domain objects
    "RepoCoordinate",
    "FileTask",
    "FileKind",
    "UploadMode",
    "PushRequest",
    "PushResult",
    "TreeItem",
    # Services
    "PushService",
    "PushOptions",
    "RepositoryService",
    # Errors
    "CommandError",
    "ValidationError",
    "ConfigError",
    "AuthenticationError",
    "PushCancelledError",
    "GitHubAPIError",
    "RefConflictError",
    # Configuration
    "load_config",
    "save_config",
]
