"""
Local file collection for gitpusher.

Turns command-line paths into FileTasks with repository-relative target
paths. A directory keeps its own name as the first path component, the
way a browser folder upload does.
"""

import fnmatch
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .domain.objects import normalize_path
from .domain.push import FileKind, FileTask
from .exit_codes import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS = ['.git', 'node_modules', '__pycache__', '.DS_Store']


def is_ignored(parts: Iterable[str], patterns: Sequence[str]) -> bool:
    """True if any path component matches any ignore pattern."""
    return any(fnmatch.fnmatch(part, pattern) for part in parts for pattern in patterns)


def target_path(relative: str, dest: Optional[str] = None) -> str:
    """Join an in-repository destination directory and a relative path."""
    if dest:
        return normalize_path(f"{dest}/{relative}")
    return normalize_path(relative)


def _walk(directory: Path, patterns: Sequence[str]) -> List[Path]:
    """Files beneath directory, sorted, skipping ignored components."""
    found = []
    for entry in sorted(directory.rglob('*')):
        relative = entry.relative_to(directory)
        if is_ignored(relative.parts, patterns):
            continue
        if entry.is_file():
            found.append(entry)
    return found


def collect_files(
    paths: Iterable,
    dest: Optional[str] = None,
    ignore_patterns: Optional[Sequence[str]] = None,
) -> List[FileTask]:
    """
    Read local files into FileTasks.

    Args:
        paths: Files and/or directories to publish
        dest: Directory inside the repository to place them under
        ignore_patterns: fnmatch patterns for names to skip
            (default: DEFAULT_IGNORE_PATTERNS)

    Returns:
        FileTasks in argument order, directory contents sorted

    Raises:
        ValidationError: if a path does not exist or cannot be read
    """
    patterns = DEFAULT_IGNORE_PATTERNS if ignore_patterns is None else list(ignore_patterns)
    tasks: List[FileTask] = []

    for raw in paths:
        path = Path(raw).expanduser()
        if not path.exists():
            raise ValidationError(f"No such file or directory: {raw}")

        try:
            if path.is_dir():
                root = path.resolve()
                for file_path in _walk(root, patterns):
                    relative = Path(root.name) / file_path.relative_to(root)
                    tasks.append(FileTask(
                        path=target_path(relative.as_posix(), dest),
                        content=file_path.read_bytes(),
                        kind=FileKind.DIRECTORY,
                    ))
            else:
                tasks.append(FileTask(
                    path=target_path(path.name, dest),
                    content=path.read_bytes(),
                    kind=FileKind.FILE,
                ))
        except OSError as e:
            raise ValidationError(f"Cannot read {raw}: {e}") from e

    logger.debug(f"Collected {len(tasks)} files ({sum(t.size for t in tasks)} bytes)")
    return tasks
