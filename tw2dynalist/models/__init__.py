"""Persisted data models."""

from tw2dynalist.models.twitter_token import TwitterToken

__all__ = [
    "TwitterToken",
]
