"""lytt-bridge: local relay from browser audio uploads to a hosted transcription API."""

__version__ = "0.1.0"

SERVICE_NAME = "lytt-bridge"
