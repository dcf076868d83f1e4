"""Language hint normalization.

Browsers and the frontend send free-form labels ("Norwegian", "nb-NO",
"en-US"). The transcription API wants an ISO 639-1 code, or nothing at all
to auto-detect.
"""

from __future__ import annotations

_ALIASES: dict[str, str] = {
    "norwegian": "no",
    "no": "no",
    "nb": "no",
    "nb-no": "no",
    "english": "en",
    "en": "en",
    "en-us": "en",
    "en-gb": "en",
}

SUPPORTED_LANGUAGES = frozenset(_ALIASES.values())


def normalize_language(raw: str | None) -> str | None:
    """Map a free-form language label to an ISO 639-1 code.

    Returns None (upstream auto-detects) for missing or unknown labels.
    """
    if raw is None:
        return None
    return _ALIASES.get(raw.strip().lower())
