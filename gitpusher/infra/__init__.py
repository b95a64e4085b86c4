"""
Infrastructure layer for gitpusher.

Contains abstractions for external systems:
- GitHubClient: GitHub REST API access (Git Data + repositories)

These provide clean interfaces that can be mocked for testing.
"""

from .github_client import (
    GitHubClient,
    GitHubAPIError,
    GitHubRepo,
    RateLimitStatus,
    RefConflictError,
    RefUpdateOutcome,
)

__all__ = [
    'GitHubClient',
    'GitHubAPIError',
    'GitHubRepo',
    'RateLimitStatus',
    'RefConflictError',
    'RefUpdateOutcome',
]
