"""Tests for provider result normalization."""

import pytest

from vizgen.services.exceptions import ProviderPermanentError
from vizgen.services.generation.result_assembler import (
    MultiAsset,
    SingleAsset,
    normalize,
    split_urls,
)


def test_single_url_without_thumbnail_uses_url():
    assets = normalize("https://cdn.example.com/v.mp4")

    assert assets == SingleAsset(
        url="https://cdn.example.com/v.mp4", thumbnail="https://cdn.example.com/v.mp4"
    )


def test_single_url_with_thumbnail():
    assets = normalize("https://cdn.example.com/v.mp4", "https://cdn.example.com/v.jpg")

    assert isinstance(assets, SingleAsset)
    assert assets.thumbnail == "https://cdn.example.com/v.jpg"
    assert assets.urls == ["https://cdn.example.com/v.mp4"]


def test_delimited_urls_with_backticks():
    assets = normalize(" `https://cdn.example.com/1.mp4` ; `https://cdn.example.com/2.mp4`,")

    assert isinstance(assets, MultiAsset)
    assert assets.urls == ["https://cdn.example.com/1.mp4", "https://cdn.example.com/2.mp4"]
    assert assets.thumbnails == assets.urls


def test_parallel_thumbnails_are_kept():
    assets = normalize(
        "https://cdn.example.com/1.mp4,https://cdn.example.com/2.mp4",
        "https://cdn.example.com/1.jpg,https://cdn.example.com/2.jpg",
    )

    assert assets.thumbnails == ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]


def test_mismatched_thumbnails_fall_back_to_urls():
    assets = normalize(
        "https://cdn.example.com/1.mp4,https://cdn.example.com/2.mp4",
        "https://cdn.example.com/cover.jpg",
    )

    assert assets.thumbnails == assets.urls


def test_list_field_is_accepted():
    assert split_urls(["https://a.example/1", "https://a.example/2;https://a.example/3"]) == [
        "https://a.example/1",
        "https://a.example/2",
        "https://a.example/3",
    ]


@pytest.mark.parametrize("raw", [None, "", " , ; ", "``", []])
def test_missing_url_is_a_provider_error(raw):
    with pytest.raises(ProviderPermanentError):
        normalize(raw)


def test_multi_asset_invariants():
    with pytest.raises(ValueError):
        MultiAsset(urls=["https://a"], thumbnails=["https://a"])
    with pytest.raises(ValueError):
        MultiAsset(urls=["https://a", "https://b"], thumbnails=["https://a"])
