"""
Unit tests for input video inspection.
"""

from unittest.mock import patch

import pytest

from streambench.media import video_info
from streambench.validation import ValidationError


@pytest.mark.unit
class TestFriendlyResolution:
    @pytest.mark.parametrize(
        "resolution,expected",
        [
            ("3840x2160", "4K"),
            ("2560x1440", "1440p"),
            ("1920x1080", "1080p"),
            ("1280x720", "720p"),
            ("7680x4320", "8K"),
            ("4096x2160", "DCI 4K"),
            ("2048x1080", "2K"),
            ("854x480", "854x480"),
            ("Unknown", "Unknown"),
        ],
    )
    def test_names(self, resolution, expected):
        assert video_info.friendly_resolution_name(resolution) == expected


@pytest.mark.unit
class TestProbe:
    def test_resolution(self, temp_dir):
        with patch.object(video_info, "run_command", return_value=(0, "1920x1080\n", "")) as run:
            assert video_info.get_video_resolution(temp_dir / "a.mp4") == "1920x1080"
        command = run.call_args[0][0]
        assert command[0] == "ffprobe"
        assert "stream=width,height" in command

    def test_resolution_trailing_separator(self, temp_dir):
        with patch.object(video_info, "run_command", return_value=(0, "1280x720x\n", "")):
            assert video_info.get_video_resolution(temp_dir / "a.mp4") == "1280x720"

    def test_probe_failure_is_unknown(self, temp_dir):
        with patch.object(video_info, "run_command", return_value=(1, "", "Invalid data")):
            assert video_info.get_video_resolution(temp_dir / "a.mp4") == "Unknown"
            assert video_info.get_video_codec(temp_dir / "a.mp4") == "Unknown"

    def test_probe_video(self, temp_dir):
        outputs = iter([(0, "3840x2160\n", ""), (0, "hevc\n", "")])
        with patch.object(video_info, "run_command", side_effect=lambda *a, **k: next(outputs)):
            metadata = video_info.probe_video(temp_dir / "a.mp4")
        assert metadata.resolution == "3840x2160"
        assert metadata.friendly_resolution == "4K"
        assert metadata.codec == "hevc"


@pytest.mark.unit
class TestResolveInputFile:
    def test_existing_path(self, temp_dir):
        video = temp_dir / "clip.mp4"
        video.write_bytes(b"x")
        assert video_info.resolve_input_file(video, temp_dir / "videos") == video

    def test_falls_back_to_videos_dir(self, temp_dir):
        videos = temp_dir / "videos"
        videos.mkdir()
        (videos / "clip.mov").write_bytes(b"x")
        assert video_info.resolve_input_file(temp_dir / "clip.mov", videos) == videos / "clip.mov"

    def test_not_found(self, temp_dir):
        with pytest.raises(ValidationError):
            video_info.resolve_input_file(temp_dir / "missing.mp4", temp_dir / "videos")


@pytest.mark.unit
class TestValidateInputFile:
    def test_missing_file(self, temp_dir):
        with pytest.raises(ValidationError):
            video_info.validate_input_file(temp_dir / "missing.mp4")

    def test_with_ffprobe_requires_video_stream(self, temp_dir):
        video = temp_dir / "audio.mp4"
        video.write_bytes(b"x")
        with patch.object(video_info, "is_tool_installed", return_value=True), \
             patch.object(video_info, "run_command", return_value=(0, "", "")):
            with pytest.raises(ValidationError):
                video_info.validate_input_file(video)

    def test_with_ffprobe_accepts_video(self, temp_dir):
        video = temp_dir / "clip.mp4"
        video.write_bytes(b"x")
        with patch.object(video_info, "is_tool_installed", return_value=True), \
             patch.object(video_info, "run_command", return_value=(0, "video\n", "")):
            assert video_info.validate_input_file(video) == video

    def test_without_ffprobe_unknown_extension_only_warns(self, temp_dir):
        video = temp_dir / "clip.bin"
        video.write_bytes(b"x")
        with patch.object(video_info, "is_tool_installed", return_value=False):
            assert video_info.validate_input_file(video) == video


@pytest.mark.unit
def test_find_default_video(temp_dir):
    (temp_dir / "b.mp4").write_bytes(b"x")
    (temp_dir / "a.mov").write_bytes(b"x")
    (temp_dir / "notes.txt").write_text("x")
    assert video_info.find_default_video(temp_dir) == temp_dir / "a.mov"
    assert video_info.find_default_video(temp_dir / "missing") is None
