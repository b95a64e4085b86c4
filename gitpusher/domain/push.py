"""
Push domain objects for gitpusher.

A push request bundles everything one run of the pipeline needs; a push
result records what the run produced. Neither is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from ..exit_codes import ValidationError
from .objects import Blob, RepoCoordinate, normalize_path


class UploadMode(Enum):
    """How blob uploads are sequenced."""
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"

    @classmethod
    def parse(cls, value) -> 'UploadMode':
        """Accept an UploadMode or one of 'sequential', 'concurrent', 'batch'."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == 'batch':
            return cls.CONCURRENT
        try:
            return cls(text)
        except ValueError:
            raise ValueError(
                f"Unknown upload mode {value!r} (expected 'sequential' or 'concurrent')"
            ) from None


class FileKind(Enum):
    """Where a file task came from."""
    FILE = "file"
    DIRECTORY = "directory"  # found while walking a directory argument


@dataclass
class FileTask:
    """One local file to publish."""
    path: str
    content: bytes
    kind: FileKind = FileKind.FILE

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def normalized_path(self) -> str:
        return normalize_path(self.path)


@dataclass(frozen=True)
class ProgressReport:
    """A single progress signal: percentage in [0, 100] and a phase message."""
    percentage: int
    message: str


@dataclass
class PushRequest:
    """Everything needed for one push."""
    coordinate: RepoCoordinate
    files: List[FileTask]
    message: str
    branch: str
    mode: UploadMode = UploadMode.SEQUENTIAL
    author_email: Optional[str] = None

    @property
    def total_size(self) -> int:
        return sum(task.size for task in self.files)

    def validate(self) -> None:
        """
        Reject malformed requests before anything touches the network.

        Raises:
            ValidationError: describing the first problem found
        """
        if self.coordinate is None or not self.coordinate.is_complete:
            raise ValidationError("Repository owner and name are required")
        if not self.files:
            raise ValidationError("No files to push")
        if not self.message or not self.message.strip():
            raise ValidationError("Commit message must not be empty")
        try:
            UploadMode.parse(self.mode)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        branch = (self.branch or '').strip()
        if not branch:
            raise ValidationError("Branch name must not be empty")
        if any(ch.isspace() for ch in self.branch) or '..' in branch:
            raise ValidationError(f"Invalid branch name: {self.branch!r}")

        seen = set()
        for task in self.files:
            path = task.normalized_path
            if not path:
                raise ValidationError(f"File path is empty after normalization: {task.path!r}")
            if path in seen:
                raise ValidationError(f"Duplicate target path: {path}")
            seen.add(path)


@dataclass(frozen=True)
class ResolvedRef:
    """
    Outcome of resolving a branch before a push.

    base_sha is both the parent of the new commit and the source of the base
    tree. ref_name is always the branch that was asked for; when it does not
    exist yet, source_branch names the default branch the base came from.
    """
    base_sha: str
    ref_name: str
    source_branch: str
    from_default: bool = False


@dataclass(frozen=True)
class RefUpdateResult:
    """What the ref updater did to move the branch."""
    ref_name: str
    sha: str
    created: bool = False
    attempts: int = 1


@dataclass
class PushResult:
    """Result of a successful push."""
    coordinate: RepoCoordinate
    branch: str
    commit_sha: str
    tree_sha: str
    base_sha: str
    blobs: List[Blob] = field(default_factory=list)
    created_branch: bool = False
    from_default_branch: bool = False
    ref_attempts: int = 1

    @property
    def files_pushed(self) -> int:
        return len(self.blobs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'repo': self.coordinate.full_name,
            'branch': self.branch,
            'commit': self.commit_sha,
            'tree': self.tree_sha,
            'parent': self.base_sha,
            'files_pushed': self.files_pushed,
            'created_branch': self.created_branch,
            'from_default_branch': self.from_default_branch,
            'ref_attempts': self.ref_attempts,
            'files': [blob.to_dict() for blob in self.blobs],
        }
