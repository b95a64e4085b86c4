"""
Tests for the end-to-end push pipeline.

Tests cover:
- Single commit on top of the branch head, base tree preserved
- Progress sequence and monotonicity
- Sequential and concurrent modes producing the same tree
- New branches created from the default branch
- Validation, cancellation and failure behaviour
"""

import threading

import pytest

from gitpusher.domain import FileTask, PushRequest, UploadMode
from gitpusher.exit_codes import ConfigError, PushCancelledError, ValidationError
from gitpusher.infra.github_client import GitHubAPIError, RefConflictError
from gitpusher.services.push_service import PushOptions, PushService

from conftest import FakeGitHubRemote

FILES = {
    "index.html": b"<h1>Hello</h1>\n",
    "css/site.css": b"body { color: black; }\n",
    "js/app.js": b"console.log('hi');\n",
    "img/logo.svg": b"<svg/>\n",
    "empty.txt": b"",
}


def _request(coord, files=None, branch="main", mode=UploadMode.SEQUENTIAL, **kwargs):
    files = FILES if files is None else files
    return PushRequest(
        coordinate=coord,
        files=[FileTask(path, content) for path, content in files.items()],
        message=kwargs.pop("message", "Publish site"),
        branch=branch,
        mode=mode,
        **kwargs,
    )


class TestPush:
    """Tests for PushService.push()."""

    def test_single_commit_on_head(self, remote, coord, sleeps):
        """Test one new commit whose parent is the old head."""
        old_head = remote.refs["main"]
        result = PushService(remote, sleep=sleeps).push(_request(coord))

        assert remote.refs["main"] == result.commit_sha
        commit = remote.commits[result.commit_sha]
        assert commit.parents == [old_head]
        assert commit.tree_sha == result.tree_sha
        assert commit.message == "Publish site"
        assert result.base_sha == old_head
        assert result.files_pushed == len(FILES)
        assert len(remote.calls_to("create_commit")) == 1

    def test_base_tree_preserved(self, remote, coord, sleeps):
        """Test files not in the push keep their content."""
        PushService(remote, sleep=sleeps).push(_request(coord))

        files = remote.files_at("main")
        assert files["README.md"] == b"# hello-world\n"
        for path, content in FILES.items():
            assert files[path] == content

    def test_overwrites_existing_path(self, remote, coord, sleeps):
        """Test a pushed path replaces the base tree's version."""
        PushService(remote, sleep=sleeps).push(
            _request(coord, files={"README.md": b"# Updated\n"})
        )
        assert remote.files_at("main")["README.md"] == b"# Updated\n"

    def test_tree_built_on_base_commit_tree(self, remote, coord, sleeps):
        """Test the base tree comes from the head commit."""
        head_tree = remote.commits[remote.refs["main"]].tree_sha
        PushService(remote, sleep=sleeps).push(_request(coord))

        _, base_tree, entries = remote.calls_to("create_tree")[0]
        assert base_tree == head_tree
        assert sorted(e.path for e in entries) == sorted(FILES)
        assert all(e.mode == "100644" and e.type == "blob" for e in entries)

    def test_paths_normalized(self, remote, coord, sleeps):
        """Test uploaded paths are normalized in the tree."""
        PushService(remote, sleep=sleeps).push(
            _request(coord, files={"/docs\\guide//intro.md": b"intro"})
        )
        assert remote.files_at("main")["docs/guide/intro.md"] == b"intro"

    def test_author_email(self, remote, coord, sleeps):
        """Test the author is the tool name plus the given email."""
        result = PushService(remote, sleep=sleeps).push(
            _request(coord, author_email="dev@example.com")
        )
        commit = remote.commits[result.commit_sha]
        assert commit.author_name == "GitPusher"
        assert commit.author_email == "dev@example.com"

    def test_no_author_without_email(self, remote, coord, sleeps):
        """Test no author block is sent without an email."""
        PushService(remote, sleep=sleeps).push(_request(coord))
        assert remote.calls_to("create_commit")[0][4] is None

    def test_last_result(self, remote, coord, sleeps):
        """Test the service keeps the most recent result."""
        service = PushService(remote, sleep=sleeps)
        result = service.push(_request(coord))
        assert service.last_result is result

    def test_repeated_push_reuses_objects(self, remote, coord, sleeps):
        """Test pushing the same files twice yields the same blobs and tree."""
        service = PushService(remote, sleep=sleeps)
        first = service.push(_request(coord))
        second = service.push(_request(coord))

        assert second.tree_sha == first.tree_sha
        assert [b.sha for b in second.blobs] == [b.sha for b in first.blobs]
        assert second.base_sha == first.commit_sha
        assert remote.refs["main"] == second.commit_sha


class TestProgress:
    """Tests for progress reporting during a push."""

    def _push(self, remote, coord, sleeps, mode):
        reports = []
        PushService(remote, sleep=sleeps).push(
            _request(coord, mode=mode), progress=lambda pct, msg: reports.append((pct, msg))
        )
        return reports

    @pytest.mark.parametrize("mode", [UploadMode.SEQUENTIAL, UploadMode.CONCURRENT])
    def test_monotonic_and_complete(self, remote, coord, sleeps, mode):
        """Test progress never decreases and ends at 100."""
        reports = self._push(remote, coord, sleeps, mode)
        percentages = [pct for pct, _ in reports]

        assert percentages == sorted(percentages)
        assert all(0 <= pct <= 100 for pct in percentages)
        assert reports[-1] == (100, "Successfully pushed files to GitHub!")

    def test_phase_messages(self, remote, coord, sleeps):
        """Test each pipeline phase reports its fixed percentage."""
        reports = self._push(remote, coord, sleeps, UploadMode.SEQUENTIAL)

        assert reports[0] == (5, "Getting repository information...")
        assert (10, "Processing files...") in reports
        assert (70, "Creating tree...") in reports
        assert (80, "Creating commit...") in reports
        assert (90, "Updating branch: main...") in reports

    def test_upload_messages_between_10_and_70(self, remote, coord, sleeps):
        """Test per-file messages stay in the upload slice."""
        reports = self._push(remote, coord, sleeps, UploadMode.SEQUENTIAL)
        uploads = [(pct, msg) for pct, msg in reports if msg.startswith("Creating blob")]

        assert len(uploads) == len(FILES)
        assert all(10 <= pct <= 70 for pct, _ in uploads)

    def test_batch_messages(self, remote, coord, sleeps):
        """Test concurrent mode reports batches."""
        reports = self._push(remote, coord, sleeps, UploadMode.CONCURRENT)
        messages = [msg for _, msg in reports]
        assert "Processing batch 1 of 2" in messages
        assert "Processing batch 2 of 2" in messages


class TestModes:
    """Tests comparing upload modes."""

    def test_same_tree_in_both_modes(self, coord, sleeps):
        """Test sequential and concurrent pushes produce identical trees."""
        sequential_remote = FakeGitHubRemote()
        concurrent_remote = FakeGitHubRemote(blob_delay=0.01)

        sequential = PushService(sequential_remote, sleep=sleeps).push(
            _request(coord, mode=UploadMode.SEQUENTIAL)
        )
        concurrent = PushService(concurrent_remote, sleep=sleeps).push(
            _request(coord, mode=UploadMode.CONCURRENT)
        )

        assert sequential.tree_sha == concurrent.tree_sha
        assert [b.to_dict() for b in sequential.blobs] == [b.to_dict() for b in concurrent.blobs]
        assert concurrent_remote.max_active_uploads <= 3

    def test_batch_size_option(self, coord, sleeps):
        """Test the configured batch size bounds concurrency."""
        remote = FakeGitHubRemote(blob_delay=0.01)
        PushService(remote, PushOptions(batch_size=2), sleep=sleeps).push(
            _request(coord, mode=UploadMode.CONCURRENT)
        )
        assert remote.max_active_uploads <= 2


class TestBranches:
    """Tests for pushing to branches that don't exist yet."""

    def test_new_branch_from_default(self, remote, coord, sleeps):
        """Test a new branch starts at the default branch head."""
        main_head = remote.refs["main"]
        result = PushService(remote, sleep=sleeps).push(_request(coord, branch="gh-pages"))

        assert result.created_branch
        assert result.from_default_branch
        assert result.branch == "gh-pages"
        assert remote.refs["gh-pages"] == result.commit_sha
        assert remote.refs["main"] == main_head
        assert remote.commits[result.commit_sha].parents == [main_head]
        assert "README.md" in remote.files_at("gh-pages")

    def test_progress_names_requested_branch(self, remote, coord, sleeps):
        """Test the update message names the requested branch."""
        reports = []
        PushService(remote, sleep=sleeps).push(
            _request(coord, branch="feature/x"),
            progress=lambda pct, msg: reports.append(msg),
        )
        assert "Updating branch: feature/x..." in reports


class TestFailures:
    """Tests for validation, cancellation and remote failures."""

    def test_zero_files_rejected_without_calls(self, remote, coord, sleeps):
        """Test an empty push is rejected before any network call."""
        with pytest.raises(ValidationError):
            PushService(remote, sleep=sleeps).push(_request(coord, files={}))
        assert remote.calls == []

    def test_invalid_branch_rejected_without_calls(self, remote, coord, sleeps):
        """Test a malformed branch is rejected before any network call."""
        with pytest.raises(ValidationError):
            PushService(remote, sleep=sleeps).push(_request(coord, branch="bad branch"))
        assert remote.calls == []

    def test_cancel_before_start(self, remote, coord, sleeps):
        """Test a pre-set cancel flag stops before any network call."""
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(PushCancelledError):
            PushService(remote, sleep=sleeps).push(_request(coord), cancel=cancel)
        assert remote.calls == []

    def test_cancel_during_upload_leaves_branch(self, remote, coord, sleeps):
        """Test cancelling mid-upload never moves the branch."""
        head = remote.refs["main"]
        cancel = threading.Event()

        def progress(pct, msg):
            if msg.startswith("Creating blob for file 2"):
                cancel.set()

        with pytest.raises(PushCancelledError):
            PushService(remote, sleep=sleeps).push(_request(coord), progress=progress,
                                                   cancel=cancel)

        assert remote.refs["main"] == head
        assert remote.calls_to("create_tree") == []

    def test_blob_failure_leaves_branch(self, remote, coord, sleeps):
        """Test a failed upload aborts before tree creation."""
        head = remote.refs["main"]
        remote.failures["create_blob"] = GitHubAPIError("GitHub API error: 500", status_code=500)

        with pytest.raises(GitHubAPIError):
            PushService(remote, sleep=sleeps).push(_request(coord))

        assert remote.refs["main"] == head
        assert remote.calls_to("create_tree") == []
        assert remote.calls_to("create_commit") == []

    def test_ref_conflicts_retried(self, remote, coord, sleeps):
        """Test a conflicting ref update is retried and succeeds."""
        remote.conflicts_remaining = 1
        result = PushService(remote, sleep=sleeps).push(_request(coord))

        assert result.ref_attempts == 2
        assert sleeps.delays == [1.0]
        assert remote.refs["main"] == result.commit_sha

    def test_ref_conflicts_exhausted(self, remote, coord, sleeps):
        """Test a branch that never settles raises RefConflictError."""
        head = remote.refs["main"]
        remote.conflicts_remaining = 100

        with pytest.raises(RefConflictError):
            PushService(remote, sleep=sleeps).push(_request(coord))
        assert remote.refs["main"] == head

    def test_missing_repository(self, sleeps):
        """Test pushing to an unknown repository fails with 404."""
        remote = FakeGitHubRemote()
        other = FakeGitHubRemote(owner="someone", name="else").coordinate

        with pytest.raises(GitHubAPIError) as exc_info:
            PushService(remote, sleep=sleeps).push(_request(other))
        assert exc_info.value.status_code == 404


class TestPushOptions:
    """Tests for PushOptions.from_config()."""

    def test_from_config(self):
        """Test values come from the push section."""
        options = PushOptions.from_config({
            "push": {
                "batch_size": 5,
                "author_name": "Bot",
                "ref_update": {"max_retries": 1, "retry_delay_seconds": 0.25},
            }
        })
        assert options == PushOptions(batch_size=5, author_name="Bot",
                                      max_retries=1, retry_delay=0.25)

    def test_defaults(self):
        """Test an empty config gives defaults."""
        assert PushOptions.from_config({}) == PushOptions()

    @pytest.mark.parametrize("push", [
        {"batch_size": 0},
        {"batch_size": "many"},
        {"ref_update": {"max_retries": -1}},
    ])
    def test_invalid(self, push):
        """Test invalid values raise ConfigError."""
        with pytest.raises(ConfigError):
            PushOptions.from_config({"push": push})
