"""Size preset conversion for provider requests and job records."""

import re

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_SIZE = "1024x1024"
DEFAULT_ASPECT_RATIO = "1:1"

_SIZE_PATTERN = re.compile(r"^\d+x\d+$")

SIZE_PRESETS = {
    "square": "1024x1024",
    "square_hd": "1024x1024",
    "portrait_4_3": "864x1152",
    "landscape_4_3": "1152x864",
    "portrait_16_9": "720x1280",
    "landscape_16_9": "1280x720",
    "portrait_2_3": "832x1248",
    "landscape_3_2": "1248x832",
    "landscape_21_9": "1512x648",
}

ASPECT_RATIOS = {
    "1024x1024": "1:1",
    "864x1152": "3:4",
    "1152x864": "4:3",
    "1280x720": "16:9",
    "720x1280": "9:16",
    "832x1248": "2:3",
    "1248x832": "3:2",
    "1512x648": "21:9",
}


def to_provider_size(size: str | None) -> str:
    """Convert a size preset to WIDTHxHEIGHT; WIDTHxHEIGHT passes through.

    Missing or unknown presets fall back to 1024x1024.
    """
    if not size or not size.strip():
        return DEFAULT_SIZE

    size = size.strip().lower()
    if _SIZE_PATTERN.match(size):
        return size

    if size not in SIZE_PRESETS:
        logger.warning("size.unknown_preset", size=size, fallback=DEFAULT_SIZE)
        return DEFAULT_SIZE
    return SIZE_PRESETS[size]


def aspect_ratio_for(size: str | None) -> str:
    """Aspect ratio label (e.g. "16:9") of a size preset or WIDTHxHEIGHT string."""
    return ASPECT_RATIOS.get(to_provider_size(size), DEFAULT_ASPECT_RATIO)
