"""Tests for size preset conversion."""

import pytest

from vizgen.services.generation.sizes import aspect_ratio_for, to_provider_size


@pytest.mark.parametrize(
    "size,expected",
    [
        (None, "1024x1024"),
        ("", "1024x1024"),
        ("square_hd", "1024x1024"),
        ("portrait_4_3", "864x1152"),
        ("Landscape_16_9", "1280x720"),
        ("landscape_21_9", "1512x648"),
        ("2048x1536", "2048x1536"),
        ("panorama", "1024x1024"),
    ],
)
def test_to_provider_size(size, expected):
    assert to_provider_size(size) == expected


@pytest.mark.parametrize(
    "size,expected",
    [
        ("landscape_16_9", "16:9"),
        ("portrait_16_9", "9:16"),
        ("1248x832", "3:2"),
        ("2048x1536", "1:1"),
        (None, "1:1"),
    ],
)
def test_aspect_ratio_for(size, expected):
    assert aspect_ratio_for(size) == expected
