"""
Shared fixtures for gitpusher tests.

FakeGitHubRemote stands in for GitHubClient. It keeps blobs, trees,
commits and refs in memory, content-addressed the way Git does for blobs,
so pushes can be checked end to end without the network.
"""

import hashlib
import threading
import time

import pytest

from gitpusher.domain.objects import (
    Commit,
    Ref,
    RepoCoordinate,
    TreeItem,
    decode_content,
    git_blob_sha,
    normalize_path,
)
from gitpusher.infra.github_client import GitHubAPIError, GitHubRepo, RefUpdateOutcome


def _digest(text: str) -> str:
    return hashlib.sha1(text.encode('utf-8')).hexdigest()


class FakeGitHubRemote:
    """In-memory GitHub repository exposing the GitHubClient method surface."""

    def __init__(self, owner='octocat', name='hello-world', default_branch='main',
                 files=None, blob_delay=0.0):
        self.coordinate = RepoCoordinate(owner, name)
        self.default_branch = default_branch
        self.blob_delay = blob_delay

        self.blobs = {}      # sha -> bytes
        self.trees = {}      # sha -> {path: blob sha}
        self.commits = {}    # sha -> Commit
        self.refs = {}       # branch -> commit sha
        self.repos = []      # GitHubRepo created or listed
        self.created_repo_options = []

        self.calls = []
        self.failures = {}           # method name -> exception to raise
        self.conflicts_remaining = 0  # update_ref answers CONFLICT while > 0

        self._lock = threading.Lock()
        self.active_uploads = 0
        self.max_active_uploads = 0

        seed = files if files is not None else {'README.md': b'# hello-world\n'}
        if seed:
            tree = {path: self._store_blob(content) for path, content in seed.items()}
            tree_sha = self._store_tree(tree)
            self.refs[default_branch] = self._store_commit("Initial commit", tree_sha, [])

        self.repos.append(self._repo(owner, name))

    # -- helpers ---------------------------------------------------------

    def _repo(self, owner, name, description=None, private=False):
        return GitHubRepo(
            owner=owner,
            name=name,
            full_name=f"{owner}/{name}",
            description=description,
            is_private=private,
            is_fork=False,
            default_branch=self.default_branch,
            html_url=f"https://github.com/{owner}/{name}",
            updated_at="2024-01-01T00:00:00Z",
        )

    def _record(self, method, *args):
        with self._lock:
            self.calls.append((method,) + args)
        error = self.failures.get(method)
        if error is not None:
            raise error

    def _check(self, coord):
        if coord != self.coordinate:
            raise GitHubAPIError(
                "GitHub API error: 404 Not Found - Not Found", status_code=404
            )

    def _store_blob(self, content):
        sha = git_blob_sha(content)
        self.blobs[sha] = content
        return sha

    def _store_tree(self, entries):
        listing = '\n'.join(f"{path} {sha}" for path, sha in sorted(entries.items()))
        sha = _digest(f"tree\0{listing}")
        self.trees[sha] = dict(entries)
        return sha

    def _store_commit(self, message, tree_sha, parents, author=None):
        author_text = f"{author['name']} <{author['email']}>" if author else ''
        sha = _digest(f"commit\0{tree_sha}\n{','.join(parents)}\n{author_text}\n{message}")
        self.commits[sha] = Commit(
            sha=sha,
            tree_sha=tree_sha,
            message=message,
            parents=list(parents),
            author_name=author['name'] if author else None,
            author_email=author['email'] if author else None,
        )
        return sha

    def calls_to(self, method):
        return [call for call in self.calls if call[0] == method]

    def files_at(self, branch):
        """{path: bytes} for the head of branch."""
        commit = self.commits[self.refs[branch]]
        return {path: self.blobs[sha] for path, sha in self.trees[commit.tree_sha].items()}

    # -- refs ------------------------------------------------------------

    def get_ref(self, coord, branch):
        self._record('get_ref', branch)
        self._check(coord)
        sha = self.refs.get(branch)
        return Ref(name=branch, sha=sha) if sha else None

    def update_ref(self, coord, branch, sha, previous_sha=None, force=True):
        self._record('update_ref', branch, sha, previous_sha)
        self._check(coord)
        if branch not in self.refs:
            return RefUpdateOutcome.NOT_FOUND
        if self.conflicts_remaining > 0:
            self.conflicts_remaining -= 1
            return RefUpdateOutcome.CONFLICT
        if previous_sha and self.refs[branch] != previous_sha:
            return RefUpdateOutcome.CONFLICT
        self.refs[branch] = sha
        return RefUpdateOutcome.UPDATED

    def create_ref(self, coord, branch, sha):
        self._record('create_ref', branch, sha)
        self._check(coord)
        if branch in self.refs:
            raise GitHubAPIError("GitHub API error: 422 - Reference already exists",
                                 status_code=422)
        self.refs[branch] = sha
        return Ref(name=branch, sha=sha)

    # -- objects ---------------------------------------------------------

    def create_blob(self, coord, content_b64):
        with self._lock:
            self.active_uploads += 1
            self.max_active_uploads = max(self.max_active_uploads, self.active_uploads)
        try:
            if self.blob_delay:
                time.sleep(self.blob_delay)
            self._record('create_blob', content_b64)
            self._check(coord)
            content = decode_content(content_b64)
            with self._lock:
                return self._store_blob(content)
        finally:
            with self._lock:
                self.active_uploads -= 1

    def create_tree(self, coord, base_tree, entries):
        self._record('create_tree', base_tree, list(entries))
        self._check(coord)
        tree = dict(self.trees[base_tree]) if base_tree else {}
        for entry in entries:
            if entry.sha not in self.blobs:
                raise GitHubAPIError("GitHub API error: 422 - Invalid tree entry",
                                     status_code=422)
            tree[normalize_path(entry.path)] = entry.sha
        return self._store_tree(tree)

    def get_commit(self, coord, sha):
        self._record('get_commit', sha)
        self._check(coord)
        if sha not in self.commits:
            raise GitHubAPIError("GitHub API error: 404 Not Found", status_code=404)
        return self.commits[sha]

    def create_commit(self, coord, message, tree_sha, parents, author=None):
        self._record('create_commit', message, tree_sha, list(parents), author)
        self._check(coord)
        return self._store_commit(message, tree_sha, parents, author)

    def get_tree(self, coord, ref='HEAD', recursive=True):
        self._record('get_tree', ref)
        self._check(coord)
        branch = self.default_branch if ref == 'HEAD' else ref
        if branch in self.refs:
            tree = self.trees[self.commits[self.refs[branch]].tree_sha]
        elif ref in self.trees:
            tree = self.trees[ref]
        else:
            raise GitHubAPIError("GitHub API error: 404 Not Found", status_code=404)

        items = []
        directories = set()
        for path, sha in tree.items():
            parts = path.split('/')
            for depth in range(1, len(parts)):
                directories.add('/'.join(parts[:depth]))
            items.append(TreeItem(path=path, type='blob', sha=sha, mode='100644',
                                  size=len(self.blobs[sha])))
        for directory in directories:
            items.append(TreeItem(path=directory, type='tree', sha=_digest(directory),
                                  mode='040000'))
        return items

    # -- repositories ----------------------------------------------------

    def get_repo(self, coord):
        self._record('get_repo')
        for repo in self.repos:
            if repo.coordinate == coord:
                return repo
        return None

    def get_default_branch(self, coord):
        self._check(coord)
        return self.get_repo(coord).default_branch

    def list_repositories(self, per_page=100):
        self._record('list_repositories')
        return list(self.repos[:per_page])

    def create_repository(self, name, description=None, private=False, auto_init=False,
                          gitignore_template=None, license_template=None):
        self._record('create_repository', name)
        self.created_repo_options.append({
            'name': name,
            'description': description,
            'private': private,
            'auto_init': auto_init,
            'gitignore_template': gitignore_template,
            'license_template': license_template,
        })
        repo = self._repo(self.coordinate.owner, name, description, private)
        self.repos.append(repo)
        return repo


class SleepRecorder:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def remote():
    """A fake repository octocat/hello-world with README.md on main."""
    return FakeGitHubRemote()


@pytest.fixture
def coord(remote):
    return remote.coordinate


@pytest.fixture
def sleeps():
    return SleepRecorder()
