"""Client for the hosted transcription API."""

from lytt_bridge.upstream.client import TranscriptionClient, create_transcription_client

__all__ = ["TranscriptionClient", "create_transcription_client"]
