"""Normalize provider results into the job's asset representation.

Providers return either a single URL or several URLs packed into one string
field (joined by "," or ";"), sometimes wrapped in backticks. Everything is
reduced to an AssetSet:

- SingleAsset(url, thumbnail)
- MultiAsset(urls, thumbnails) with parallel lists
"""

import re
from dataclasses import dataclass
from typing import Union

from vizgen.services.exceptions import ProviderPermanentError

_DELIMITERS = re.compile(r"[,;]")


@dataclass(frozen=True)
class SingleAsset:
    url: str
    thumbnail: str

    @property
    def urls(self) -> list[str]:
        return [self.url]

    @property
    def thumbnails(self) -> list[str]:
        return [self.thumbnail]


@dataclass(frozen=True)
class MultiAsset:
    urls: list[str]
    thumbnails: list[str]

    def __post_init__(self):
        if len(self.urls) < 2:
            raise ValueError("MultiAsset needs at least two urls")
        if len(self.thumbnails) != len(self.urls):
            raise ValueError("MultiAsset thumbnails must parallel urls")


AssetSet = Union[SingleAsset, MultiAsset]

RawField = Union[str, list[str], None]


def split_urls(raw: RawField) -> list[str]:
    """Split a delimited URL field into clean URLs.

    Strips whitespace and backtick quoting from every piece and drops empties.
    Accepts a list of such strings as well.
    """
    if raw is None:
        return []
    pieces = raw if isinstance(raw, list) else [raw]

    urls = []
    for piece in pieces:
        if not piece:
            continue
        for part in _DELIMITERS.split(str(piece)):
            cleaned = part.strip().strip("`").strip()
            if cleaned:
                urls.append(cleaned)
    return urls


def normalize(url_field: RawField, thumbnail_field: RawField = None) -> AssetSet:
    """Build an AssetSet from the provider's URL and thumbnail fields.

    Thumbnails default to the asset URL itself unless the provider supplied
    exactly one thumbnail per URL.

    Raises:
        ProviderPermanentError: If the result carries no URL at all
    """
    urls = split_urls(url_field)
    if not urls:
        raise ProviderPermanentError("Provider result contains no asset url")

    thumbnails = split_urls(thumbnail_field)
    if len(thumbnails) != len(urls):
        thumbnails = list(urls)

    if len(urls) == 1:
        return SingleAsset(url=urls[0], thumbnail=thumbnails[0])
    return MultiAsset(urls=urls, thumbnails=thumbnails)
