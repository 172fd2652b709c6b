"""Unit tests for the Video model."""

import pytest

from src.domain.models.video import Video, VideoStatus


class TestVideoStatus:
    """Tests for VideoStatus enum."""

    def test_values(self):
        assert VideoStatus.IN_PROGRESS == "inProgress"
        assert VideoStatus.UPLOADED == "uploaded"
        assert VideoStatus.ERROR == "error"

    def test_string_conversion(self):
        assert VideoStatus.UPLOADED.value == "uploaded"
        assert f"{VideoStatus.ERROR.value}" == "error"


class TestVideo:
    """Tests for Video model."""

    @pytest.fixture
    def sample_video(self) -> Video:
        """Create a sample video for testing."""
        return Video(
            owner_id="user-1",
            title="Sample Video",
            description="A test video",
            tags=["demo"],
            original_filename="clip.mp4",
            mime_type="video/mp4",
            size_bytes=1024,
        )

    def test_defaults(self, sample_video: Video):
        assert sample_video.status == VideoStatus.IN_PROGRESS
        assert len(sample_video.id) == 36
        assert sample_video.duration_seconds is None
        assert sample_video.manifest_name is None
        assert sample_video.original_asset_name is None

    def test_ids_are_unique(self):
        assert Video(owner_id="u").id != Video(owner_id="u").id

    def test_title_length_limit(self):
        with pytest.raises(ValueError):
            Video(owner_id="u", title="x" * 151)

    def test_description_length_limit(self):
        with pytest.raises(ValueError):
            Video(owner_id="u", description="x" * 2001)

    @pytest.mark.parametrize(
        ("status", "ready"),
        [
            (VideoStatus.IN_PROGRESS, False),
            (VideoStatus.UPLOADED, True),
            (VideoStatus.ERROR, False),
        ],
    )
    def test_is_ready(self, status, ready):
        assert Video(owner_id="u", status=status).is_ready is ready

    def test_is_owned_by(self, sample_video: Video):
        assert sample_video.is_owned_by("user-1")
        assert not sample_video.is_owned_by("user-2")
        assert not sample_video.is_owned_by("")

    def test_preferred_thumbnail_custom_first(self, sample_video: Video):
        video = sample_video.model_copy(
            update={"static_thumb_name": "a.webp", "custom_thumb_name": "a_custom.webp"}
        )
        assert video.preferred_thumbnail == "a_custom.webp"

    def test_preferred_thumbnail_falls_back_to_static(self, sample_video: Video):
        video = sample_video.model_copy(update={"static_thumb_name": "a.webp"})
        assert video.preferred_thumbnail == "a.webp"

    def test_preferred_thumbnail_none(self, sample_video: Video):
        assert sample_video.preferred_thumbnail is None


class TestWithMetadata:
    """Tests for owner metadata edits."""

    def test_replaces_given_fields_only(self):
        video = Video(owner_id="u", title="Old", description="Keep me")

        updated = video.with_metadata(title="New", tags=["a", "b"])

        assert updated.title == "New"
        assert updated.description == "Keep me"
        assert updated.tags == ["a", "b"]
        assert video.title == "Old"

    def test_does_not_touch_status(self):
        video = Video(owner_id="u", status=VideoStatus.UPLOADED)
        assert video.with_metadata(category="music").status == VideoStatus.UPLOADED
