"""
Domain layer for gitpusher.

Contains pure domain objects with no I/O or side effects:
- Git objects: RepoCoordinate, Blob, TreeEntry, Ref, Commit, TreeItem
- Push objects: FileTask, PushRequest, PushResult, ProgressReport
"""

from .objects import (
    FILE_MODE,
    RepoCoordinate,
    Blob,
    TreeEntry,
    Ref,
    Commit,
    TreeItem,
    normalize_path,
    encode_content,
    decode_content,
    git_blob_sha,
)
from .push import (
    UploadMode,
    FileKind,
    FileTask,
    ProgressReport,
    PushRequest,
    ResolvedRef,
    RefUpdateResult,
    PushResult,
)

__all__ = [
    'FILE_MODE',
    'RepoCoordinate',
    'Blob',
    'TreeEntry',
    'Ref',
    'Commit',
    'TreeItem',
    'normalize_path',
    'encode_content',
    'decode_content',
    'git_blob_sha',
    'UploadMode',
    'FileKind',
    'FileTask',
    'ProgressReport',
    'PushRequest',
    'ResolvedRef',
    'RefUpdateResult',
    'PushResult',
]
