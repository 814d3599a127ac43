"""Git helpers for fetching repositories."""

from .fetcher import RepositoryFetcher, repository_id_from_url

__all__ = ["RepositoryFetcher", "repository_id_from_url"]
