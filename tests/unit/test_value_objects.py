"""Unit tests for domain value objects."""

import pytest

from src.domain.exceptions import InvalidVideoIdException
from src.domain.value_objects import VideoId

VALID_ID = "3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6b"


class TestVideoId:
    """Tests for VideoId value object."""

    def test_valid_id(self):
        vid = VideoId(value=VALID_ID)
        assert vid.value == VALID_ID
        assert str(vid) == VALID_ID

    def test_uppercase_is_normalized(self):
        vid = VideoId(value=VALID_ID.upper())
        assert vid.value == VALID_ID

    @pytest.mark.parametrize(
        "raw",
        [
            "abc",
            "../../etc/passwd",
            "3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6",
            "3f2b1c9e-8d7a-4e6f-9b0a-1c2d3e4f5a6bz",
            "3f2b1c9e/8d7a-4e6f-9b0a-1c2d3e4f5a6b",
            "zzzzzzzz-8d7a-4e6f-9b0a-1c2d3e4f5a6b",
        ],
    )
    def test_invalid_format(self, raw):
        with pytest.raises(ValueError):
            VideoId(value=raw)

    def test_parse_strips_whitespace(self):
        assert VideoId.parse(f"  {VALID_ID} ").value == VALID_ID

    @pytest.mark.parametrize("raw", ["", "not-a-uuid", "..", "a/b"])
    def test_parse_raises_domain_error(self, raw):
        with pytest.raises(InvalidVideoIdException):
            VideoId.parse(raw)

    def test_equality_and_hash(self):
        a = VideoId(value=VALID_ID)
        b = VideoId(value=VALID_ID.upper())
        assert a == b
        assert a == VALID_ID
        assert a != 42
        assert len({a, b}) == 1
