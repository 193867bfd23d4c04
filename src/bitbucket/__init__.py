"""Source side: list a Bitbucket workspace and pull the user's commits."""

from .config import BitbucketSettings, load_bitbucket_settings
from .puller import BitbucketPuller, extract_email

__all__ = ["BitbucketSettings", "BitbucketPuller", "extract_email", "load_bitbucket_settings"]
