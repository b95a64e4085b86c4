"""
Blob upload and scheduling for gitpusher.

BlobUploader turns one FileTask into a remote blob. The schedulers decide
how the uploads are sequenced:

- SequentialScheduler: one file at a time, in order
- BatchScheduler: fixed-size batches uploaded concurrently, with a barrier
  between batches

Both map uploaded bytes onto the same slice of the push's progress range.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional

from ..domain.objects import Blob, RepoCoordinate, encode_content, git_blob_sha
from ..domain.push import FileTask, UploadMode
from ..exit_codes import ConfigError, PushCancelledError
from ..infra.github_client import GitHubClient

logger = logging.getLogger(__name__)

# Slice of the push's 0-100 progress range covered by uploads
UPLOAD_PROGRESS_START = 10
UPLOAD_PROGRESS_END = 70

DEFAULT_BATCH_SIZE = 3

ProgressCallback = Callable[[int, str], None]


def upload_progress(processed: int, total: int) -> int:
    """
    Map bytes uploaded so far onto the upload slice of the progress range.

    A push whose files are all empty has nothing to weigh, so it goes
    straight to the end of the slice.
    """
    if total <= 0:
        return UPLOAD_PROGRESS_END
    span = UPLOAD_PROGRESS_END - UPLOAD_PROGRESS_START
    value = UPLOAD_PROGRESS_START + round(processed / total * span)
    return max(UPLOAD_PROGRESS_START, min(UPLOAD_PROGRESS_END, value))


def check_cancelled(cancel: Optional[threading.Event]) -> None:
    """Raise PushCancelledError if the caller asked to stop."""
    if cancel is not None and cancel.is_set():
        raise PushCancelledError()


def _no_progress(percentage: int, message: str) -> None:
    pass


class BlobUploader:
    """Creates one remote blob per file. Stateless; safe to share across threads."""

    def __init__(self, client: GitHubClient):
        self.client = client

    def upload(self, coord: RepoCoordinate, task: FileTask) -> Blob:
        """
        Upload a file's bytes as a blob.

        Returns:
            Blob with the remote SHA and the normalized target path

        Raises:
            GitHubAPIError: if the remote rejects the blob
        """
        sha = self.client.create_blob(coord, encode_content(task.content))

        expected = git_blob_sha(task.content)
        if sha != expected:
            logger.warning(
                f"Blob SHA for {task.normalized_path} differs from local content hash "
                f"({sha[:7]} != {expected[:7]})"
            )

        logger.debug(f"Uploaded {task.normalized_path} ({task.size} bytes) as {sha[:7]}")
        return Blob(sha=sha, path=task.normalized_path)


class UploadScheduler(ABC):
    """Drains a list of upload tasks, reporting cumulative progress."""

    def __init__(self, uploader: BlobUploader, cancel: Optional[threading.Event] = None):
        self.uploader = uploader
        self.cancel = cancel

    @abstractmethod
    def schedule(
        self,
        coord: RepoCoordinate,
        files: List[FileTask],
        progress: Optional[ProgressCallback] = None,
    ) -> List[Blob]:
        """Upload every file; return one Blob per file."""


class SequentialScheduler(UploadScheduler):
    """Uploads files one at a time in the order given."""

    def schedule(self, coord, files, progress=None):
        progress = progress or _no_progress
        total = sum(task.size for task in files)
        processed = 0
        blobs = []

        for index, task in enumerate(files, 1):
            check_cancelled(self.cancel)
            progress(
                upload_progress(processed, total),
                f"Creating blob for file {index} of {len(files)}: {task.normalized_path}",
            )
            blobs.append(self.uploader.upload(coord, task))
            processed += task.size

        return blobs


class BatchScheduler(UploadScheduler):
    """
    Uploads files in fixed-size batches.

    All uploads in a batch run concurrently; the next batch starts only once
    every upload of the current one has finished. Progress counts only the
    bytes of completed batches.
    """

    def __init__(self, uploader: BlobUploader, batch_size: int = DEFAULT_BATCH_SIZE,
                 cancel: Optional[threading.Event] = None):
        super().__init__(uploader, cancel)
        if batch_size < 1:
            raise ConfigError(f"Batch size must be at least 1, got {batch_size}")
        self.batch_size = batch_size

    def batches(self, files: List[FileTask]) -> List[List[FileTask]]:
        return [files[i:i + self.batch_size] for i in range(0, len(files), self.batch_size)]

    def schedule(self, coord, files, progress=None):
        progress = progress or _no_progress
        total = sum(task.size for task in files)
        batches = self.batches(files)
        processed = 0
        blobs = []

        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for index, batch in enumerate(batches, 1):
                check_cancelled(self.cancel)
                progress(
                    upload_progress(processed, total),
                    f"Processing batch {index} of {len(batches)}",
                )

                futures = [executor.submit(self.uploader.upload, coord, task) for task in batch]
                wait(futures)

                for future in futures:
                    error = future.exception()
                    if error is not None:
                        raise error

                blobs.extend(future.result() for future in futures)
                processed += sum(task.size for task in batch)

        return blobs


def create_scheduler(
    mode: UploadMode,
    uploader: BlobUploader,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel: Optional[threading.Event] = None,
) -> UploadScheduler:
    """Pick the scheduler for an upload mode."""
    if UploadMode.parse(mode) is UploadMode.CONCURRENT:
        return BatchScheduler(uploader, batch_size=batch_size, cancel=cancel)
    return SequentialScheduler(uploader, cancel=cancel)
