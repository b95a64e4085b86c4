"""
Git object domain types for gitpusher.

Pure value objects describing what lives on the remote object store:
repository coordinates, blobs, tree entries, refs and commits. Also the
small helpers every layer agrees on: path normalization, base64 transport
encoding and the Git content address of a blob.
"""

import base64
import hashlib
import re
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

# Regular, non-executable file
FILE_MODE = "100644"

_SEPARATORS = re.compile(r'/+')


def normalize_path(path: str) -> str:
    """
    Normalize a repository path.

    Backslashes become forward slashes, runs of separators collapse to one,
    and leading/trailing separators are stripped:

        'a//b/'    -> 'a/b'
        '/a/b'     -> 'a/b'
        'dir\\f.txt' -> 'dir/f.txt'
    """
    return _SEPARATORS.sub('/', path.replace('\\', '/')).strip('/')


def encode_content(content: bytes) -> str:
    """Base64-encode raw bytes for blob transmission."""
    return base64.b64encode(content).decode('ascii')


def decode_content(encoded: str) -> bytes:
    """Inverse of encode_content. Tolerates the line breaks GitHub inserts."""
    return base64.b64decode(''.join(encoded.split()))


def git_blob_sha(content: bytes) -> str:
    """Content address Git assigns to a blob holding these bytes."""
    header = f"blob {len(content)}\0".encode('ascii')
    return hashlib.sha1(header + content).hexdigest()


@dataclass(frozen=True, eq=False)
class RepoCoordinate:
    """
    Owner/name pair identifying a remote repository.

    Case is preserved for display and URLs, but equality follows GitHub,
    which treats owner and repository names case-insensitively.
    """
    owner: str
    name: str

    @classmethod
    def parse(cls, full_name: str) -> 'RepoCoordinate':
        """Build from an 'owner/name' string. Raises ValueError if malformed."""
        parts = [p.strip() for p in full_name.strip().strip('/').split('/')]
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Expected OWNER/REPO, got {full_name!r}")
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def is_complete(self) -> bool:
        return bool(self.owner.strip()) and bool(self.name.strip())

    def _key(self):
        return (self.owner.lower(), self.name.lower())

    def __eq__(self, other):
        if not isinstance(other, RepoCoordinate):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        return self.full_name


@dataclass(frozen=True)
class Blob:
    """A blob created on the remote, together with the path it was uploaded for."""
    sha: str
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'sha': self.sha}


@dataclass(frozen=True)
class TreeEntry:
    """One path -> blob binding in a tree creation request."""
    path: str
    sha: str
    mode: str = FILE_MODE
    type: str = "blob"

    @classmethod
    def from_blob(cls, blob: Blob) -> 'TreeEntry':
        return cls(path=normalize_path(blob.path), sha=blob.sha)

    def to_api(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'mode': self.mode,
            'type': self.type,
            'sha': self.sha,
        }


@dataclass(frozen=True)
class Ref:
    """A branch pointer and the commit it currently points to."""
    name: str
    sha: str

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Ref':
        ref = data.get('ref', '')
        name = ref[len('refs/heads/'):] if ref.startswith('refs/heads/') else ref
        return cls(name=name, sha=data.get('object', {}).get('sha', ''))


@dataclass(frozen=True)
class Commit:
    """An immutable commit snapshot."""
    sha: str
    tree_sha: str
    message: str = ""
    parents: List[str] = field(default_factory=list)
    author_name: Optional[str] = None
    author_email: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Commit':
        author = data.get('author') or {}
        return cls(
            sha=data.get('sha', ''),
            tree_sha=data.get('tree', {}).get('sha', ''),
            message=data.get('message', ''),
            parents=[p.get('sha', '') for p in data.get('parents', [])],
            author_name=author.get('name'),
            author_email=author.get('email'),
        )


@dataclass(frozen=True)
class TreeItem:
    """One entry of a recursive tree listing."""
    path: str
    type: str        # 'blob', 'tree' or 'commit' (submodule)
    sha: str
    mode: str = ""
    size: Optional[int] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'TreeItem':
        return cls(
            path=data.get('path', ''),
            type=data.get('type', ''),
            sha=data.get('sha', ''),
            mode=data.get('mode', ''),
            size=data.get('size'),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'path': self.path,
            'type': self.type,
            'sha': self.sha,
            'mode': self.mode,
        }
        if self.size is not None:
            result['size'] = self.size
        return result
