"""
GitHub API client infrastructure for gitpusher.

Typed request/response wrappers over the GitHub REST API:
- Git Data endpoints: refs, blobs, trees, commits
- Repository metadata, listing and creation

The client carries no retry policy. Callers decide what a failure means.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Dict, Any
from urllib.parse import quote

import requests

from ..domain.objects import Commit, Ref, RepoCoordinate, TreeEntry, TreeItem
from ..exit_codes import APIError, API_ERROR, AUTH_ERROR, NETWORK_ERROR

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_MEDIA_TYPE = "application/vnd.github.v3+json"

# Statuses GitHub uses when a conditional ref update loses a race
CONFLICT_STATUSES = (409, 412, 422)

# PATCH on a branch that does not exist answers 422 with this message, not 404
MISSING_REF_MESSAGE = "Reference does not exist"


def response_message(response) -> str:
    """The 'message' field of an error body, or '' when there is none."""
    try:
        body = response.json()
    except ValueError:
        return ''
    if isinstance(body, dict):
        return body.get('message', '') or ''
    return ''


class GitHubAPIError(APIError):
    """A non-2xx response (or transport failure) from the GitHub API."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 endpoint: Optional[str] = None):
        if status_code is None:
            exit_code = NETWORK_ERROR
        elif status_code in (401, 403):
            exit_code = AUTH_ERROR
        else:
            exit_code = API_ERROR
        super().__init__(message, exit_code)
        self.status_code = status_code
        self.endpoint = endpoint

    @classmethod
    def from_response(cls, response, endpoint: str) -> 'GitHubAPIError':
        """Build from a failed response, keeping the remote's own message."""
        detail = response_message(response)
        message = f"GitHub API error: {response.status_code} {response.reason or ''}".rstrip()
        if detail:
            message += f" - {detail}"
        return cls(message, status_code=response.status_code, endpoint=endpoint)


class RefConflictError(GitHubAPIError):
    """The branch kept moving under us until the retry budget ran out."""


class RefUpdateOutcome(Enum):
    """Answer to a conditional ref update."""
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


@dataclass
class GitHubRepo:
    """GitHub repository metadata."""
    owner: str
    name: str
    full_name: str
    description: Optional[str]
    is_private: bool
    is_fork: bool
    default_branch: str
    html_url: str
    updated_at: Optional[str]

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'GitHubRepo':
        """Create from GitHub API response."""
        owner = data.get('owner', {})

        return cls(
            owner=owner.get('login', '') if isinstance(owner, dict) else str(owner),
            name=data.get('name', ''),
            full_name=data.get('full_name', ''),
            description=data.get('description'),
            is_private=data.get('private', False),
            is_fork=data.get('fork', False),
            default_branch=data.get('default_branch') or 'main',
            html_url=data.get('html_url', ''),
            updated_at=data.get('updated_at'),
        )

    @property
    def coordinate(self) -> RepoCoordinate:
        return RepoCoordinate(owner=self.owner, name=self.name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'full_name': self.full_name,
            'owner': self.owner,
            'name': self.name,
            'description': self.description,
            'private': self.is_private,
            'fork': self.is_fork,
            'default_branch': self.default_branch,
            'url': self.html_url,
            'updated_at': self.updated_at,
        }


class GitHubClient:
    """
    GitHub REST API client.

    Example:
        client = GitHubClient(token="ghp_...")
        coord = RepoCoordinate("octocat", "hello-world")
        ref = client.get_ref(coord, "main")
        if ref:
            print(ref.sha)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30,
        media_type: str = DEFAULT_MEDIA_TYPE,
        user_agent: str = "gitpusher",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token, sent as a bearer token
            api_url: API root (override for GitHub Enterprise)
            timeout: Per-request timeout in seconds
            media_type: Versioned media type for the Accept header
            user_agent: User-Agent header value
            session: requests.Session to use (created if None)
        """
        self.token = token
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': media_type,
            'User-Agent': user_agent,
        })
        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'
        self._rate_limit_status: Optional[RateLimitStatus] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], token: Optional[str] = None) -> 'GitHubClient':
        """Build a client from the 'github' config section."""
        github = config.get('github', {})
        return cls(
            token=token or github.get('token') or None,
            api_url=github.get('api_url', DEFAULT_API_URL),
            timeout=github.get('timeout_seconds', 30),
            media_type=github.get('media_type', DEFAULT_MEDIA_TYPE),
        )

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))
        except (ValueError, TypeError):
            return

        if remaining >= 0 and limit >= 0:
            self._rate_limit_status = RateLimitStatus(
                remaining=remaining,
                limit=limit,
                reset_time=reset_time,
                used=used
            )

            if self._rate_limit_status.is_low:
                logger.warning(
                    f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                    f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                )

    @property
    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status seen on the last response, if any."""
        return self._rate_limit_status

    def _request(self, method: str, endpoint: str,
                 payload: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, Any]] = None):
        """Send one request. Transport failures become GitHubAPIError."""
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method, url, json=payload, params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise GitHubAPIError(f"GitHub API request failed: {e}", endpoint=endpoint) from e

        self._update_rate_limit_from_headers(response.headers)
        return response

    @staticmethod
    def _succeeded(response) -> bool:
        return 200 <= response.status_code < 300

    def _call(self, method: str, endpoint: str,
              payload: Optional[Dict[str, Any]] = None,
              params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a request and return its JSON body, raising on any non-2xx."""
        response = self._request(method, endpoint, payload=payload, params=params)
        if not self._succeeded(response):
            raise GitHubAPIError.from_response(response, endpoint)
        return response.json()

    @staticmethod
    def _repo_path(coord: RepoCoordinate) -> str:
        return f"repos/{quote(coord.owner, safe='')}/{quote(coord.name, safe='')}"

    def _ref_path(self, coord: RepoCoordinate, branch: str) -> str:
        return f"{self._repo_path(coord)}/git/refs/heads/{quote(branch, safe='/')}"

    # ------------------------------------------------------------------
    # refs
    # ------------------------------------------------------------------

    def get_ref(self, coord: RepoCoordinate, branch: str) -> Optional[Ref]:
        """
        Get a branch ref.

        Returns:
            Ref, or None if the branch does not exist
        """
        endpoint = self._ref_path(coord, branch)
        response = self._request('GET', endpoint)
        if response.status_code == 404:
            return None
        if not self._succeeded(response):
            raise GitHubAPIError.from_response(response, endpoint)

        data = response.json()
        # A prefix match returns a list of refs; only an exact match counts
        if isinstance(data, list):
            for item in data:
                if item.get('ref') == f"refs/heads/{branch}":
                    return Ref.from_api_response(item)
            return None
        return Ref.from_api_response(data)

    def update_ref(self, coord: RepoCoordinate, branch: str, sha: str,
                   previous_sha: Optional[str] = None,
                   force: bool = True) -> RefUpdateOutcome:
        """
        Move a branch to a new commit.

        previous_sha is sent as the expected current value so the remote can
        reject the update if the branch moved in the meantime.

        Returns:
            RefUpdateOutcome.UPDATED, NOT_FOUND or CONFLICT

        Raises:
            GitHubAPIError: for any other failure
        """
        endpoint = self._ref_path(coord, branch)
        payload: Dict[str, Any] = {'sha': sha, 'force': force}
        if previous_sha:
            payload['previous_sha'] = previous_sha

        response = self._request('PATCH', endpoint, payload=payload)
        if self._succeeded(response):
            return RefUpdateOutcome.UPDATED
        if response.status_code == 404:
            return RefUpdateOutcome.NOT_FOUND
        if (response.status_code == 422
                and response_message(response) == MISSING_REF_MESSAGE):
            return RefUpdateOutcome.NOT_FOUND
        if response.status_code in CONFLICT_STATUSES:
            return RefUpdateOutcome.CONFLICT
        raise GitHubAPIError.from_response(response, endpoint)

    def create_ref(self, coord: RepoCoordinate, branch: str, sha: str) -> Ref:
        """Create refs/heads/<branch> pointing at sha."""
        data = self._call('POST', f"{self._repo_path(coord)}/git/refs", payload={
            'ref': f"refs/heads/{branch}",
            'sha': sha,
        })
        return Ref.from_api_response(data)

    # ------------------------------------------------------------------
    # objects
    # ------------------------------------------------------------------

    def create_blob(self, coord: RepoCoordinate, content_b64: str) -> str:
        """Create a blob from base64 content. Returns the blob SHA."""
        data = self._call('POST', f"{self._repo_path(coord)}/git/blobs", payload={
            'content': content_b64,
            'encoding': 'base64',
        })
        return data['sha']

    def create_tree(self, coord: RepoCoordinate, base_tree: Optional[str],
                    entries: List[TreeEntry]) -> str:
        """Create a tree overlaying entries onto base_tree. Returns the tree SHA."""
        payload: Dict[str, Any] = {'tree': [entry.to_api() for entry in entries]}
        if base_tree:
            payload['base_tree'] = base_tree
        data = self._call('POST', f"{self._repo_path(coord)}/git/trees", payload=payload)
        return data['sha']

    def get_commit(self, coord: RepoCoordinate, sha: str) -> Commit:
        """Get a commit object."""
        data = self._call('GET', f"{self._repo_path(coord)}/git/commits/{sha}")
        return Commit.from_api_response(data)

    def create_commit(self, coord: RepoCoordinate, message: str, tree_sha: str,
                      parents: List[str],
                      author: Optional[Dict[str, str]] = None) -> str:
        """Create a commit. Returns the commit SHA."""
        payload: Dict[str, Any] = {
            'message': message,
            'tree': tree_sha,
            'parents': list(parents),
        }
        if author:
            payload['author'] = author
        data = self._call('POST', f"{self._repo_path(coord)}/git/commits", payload=payload)
        return data['sha']

    def get_tree(self, coord: RepoCoordinate, ref: str = 'HEAD',
                 recursive: bool = True) -> List[TreeItem]:
        """
        List a repository tree.

        Args:
            coord: Repository
            ref: Tree SHA, branch name or 'HEAD'
            recursive: Include every nested entry

        Returns:
            List of TreeItem
        """
        params = {'recursive': 1} if recursive else None
        data = self._call(
            'GET', f"{self._repo_path(coord)}/git/trees/{quote(ref, safe='')}", params=params
        )
        if data.get('truncated'):
            logger.warning(f"Tree listing for {coord} was truncated by GitHub")
        return [TreeItem.from_api_response(item) for item in data.get('tree', [])]

    # ------------------------------------------------------------------
    # repositories
    # ------------------------------------------------------------------

    def get_repo(self, coord: RepoCoordinate) -> Optional[GitHubRepo]:
        """
        Get repository metadata.

        Returns:
            GitHubRepo or None if not found
        """
        endpoint = self._repo_path(coord)
        response = self._request('GET', endpoint)
        if response.status_code == 404:
            return None
        if not self._succeeded(response):
            raise GitHubAPIError.from_response(response, endpoint)
        return GitHubRepo.from_api_response(response.json())

    def get_default_branch(self, coord: RepoCoordinate) -> str:
        """Name of the repository's default branch."""
        repo = self.get_repo(coord)
        if repo is None:
            raise GitHubAPIError(
                f"Repository not found: {coord}", status_code=404, endpoint=self._repo_path(coord)
            )
        return repo.default_branch

    def list_repositories(self, per_page: int = 100) -> List[GitHubRepo]:
        """
        List repositories of the authenticated user.

        Only the first page is fetched.
        """
        data = self._call('GET', 'user/repos', params={'per_page': per_page})
        return [GitHubRepo.from_api_response(item) for item in data or []]

    def create_repository(
        self,
        name: str,
        description: Optional[str] = None,
        private: bool = False,
        auto_init: bool = False,
        gitignore_template: Optional[str] = None,
        license_template: Optional[str] = None,
    ) -> GitHubRepo:
        """Create a repository for the authenticated user."""
        payload: Dict[str, Any] = {
            'name': name,
            'private': private,
            'auto_init': auto_init,
        }
        if description:
            payload['description'] = description
        if gitignore_template:
            payload['gitignore_template'] = gitignore_template
        if license_template:
            payload['license_template'] = license_template

        data = self._call('POST', 'user/repos', payload=payload)
        return GitHubRepo.from_api_response(data)
