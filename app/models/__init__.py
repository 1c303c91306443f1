"""Database models"""

from app.models.github_repository import GitHubRepository

__all__ = [
    "GitHubRepository",
]
