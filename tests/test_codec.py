from __future__ import annotations

import pytest

from districts import codec
from districts.errors import MalformedIdentifier


@pytest.mark.parametrize(
    "raw, depth, expected",
    [
        ("440103", 0, 44),
        ("440103", 1, "4401"),
        ("440103", 2, "440103"),
        ("110000", 0, 11),
        ("05000012", 2, "050000"),
    ],
)
def test_encode_truncates_to_level(raw, depth, expected):
    assert codec.encode(raw, depth) == expected


def test_encode_rejects_short_identifier():
    with pytest.raises(MalformedIdentifier) as err:
        codec.encode("440", 2)
    assert err.value.identifier == "440"
    assert err.value.depth == 2
    assert err.value.reason == "MalformedIdentifier"


@pytest.mark.parametrize("raw, depth", [("4a0103", 1), ("", 0), ("44", 3), ("44", -1)])
def test_encode_rejects_unusable_input(raw, depth):
    with pytest.raises(MalformedIdentifier):
        codec.encode(raw, depth)


def test_prefix_pads_province_code():
    assert codec.prefix(44) == "44"
    assert codec.prefix(5) == "05"
    assert codec.prefix("4401") == "4401"


def test_depth_from_level():
    assert codec.depth_from_level(1) == 0
    assert codec.depth_from_level(3) == 2
    assert codec.depth_from_level(None) is None
