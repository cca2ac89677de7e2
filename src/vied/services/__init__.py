"""Services module for Vied."""

from vied.services.interfaces import IMediaProbe, ITranscodeClient
from vied.services.media import MediaService

__all__ = [
    "IMediaProbe",
    "ITranscodeClient",
    "MediaService",
]
