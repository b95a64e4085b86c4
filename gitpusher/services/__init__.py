"""
Service layer for gitpusher.

Services orchestrate domain objects and the GitHub client:
- PushService: the end-to-end push pipeline
- RefResolver / RefUpdater: branch lookup and conflict-aware update
- BlobUploader and the upload schedulers
- TreeBuilder / CommitBuilder
- RepositoryService: list, create and browse repositories
"""

from .object_service import CommitBuilder, TreeBuilder
from .push_service import PushOptions, PushService
from .ref_service import RefResolver, RefUpdater
from .repository_service import RepositoryService
from .upload_service import (
    BatchScheduler,
    BlobUploader,
    SequentialScheduler,
    UploadScheduler,
    create_scheduler,
    upload_progress,
)

__all__ = [
    'PushService',
    'PushOptions',
    'RefResolver',
    'RefUpdater',
    'BlobUploader',
    'UploadScheduler',
    'SequentialScheduler',
    'BatchScheduler',
    'create_scheduler',
    'upload_progress',
    'TreeBuilder',
    'CommitBuilder',
    'RepositoryService',
]
