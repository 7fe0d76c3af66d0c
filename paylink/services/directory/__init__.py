"""
Directory service module.

Client for the external identity directory.
"""

from .client import DirectoryClient, map_directory_user


__all__ = [
    "DirectoryClient",
    "map_directory_user",
]
