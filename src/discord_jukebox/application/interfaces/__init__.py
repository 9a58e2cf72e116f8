"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_jukebox.application.interfaces.audio_decoder import AudioDecoder
from discord_jukebox.application.interfaces.catalog_provider import CatalogProvider, CatalogTrack
from discord_jukebox.application.interfaces.media_resolver import MediaInfo, MediaResolver
from discord_jukebox.application.interfaces.voice_adapter import (
    AudioSink,
    MessageChannel,
    SinkListener,
    VoiceGateway,
    VoiceSession,
)

__all__ = [
    "AudioDecoder",
    "AudioSink",
    "CatalogProvider",
    "CatalogTrack",
    "MediaInfo",
    "MediaResolver",
    "MessageChannel",
    "SinkListener",
    "VoiceGateway",
    "VoiceSession",
]
