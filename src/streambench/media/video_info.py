"""
Input video inspection via ffprobe.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.runtime import VideoMetadata
from ..system.commands import is_tool_installed, run_command
from ..validation import ValidationError

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

VIDEO_EXTENSIONS = (".mp4", ".mov", ".mkv", ".avi")

FRIENDLY_RESOLUTIONS = {
    "3840x2160": "4K",
    "2560x1440": "1440p",
    "1920x1080": "1080p",
    "1280x720": "720p",
    "7680x4320": "8K",
    "4096x2160": "DCI 4K",
    "2048x1080": "2K",
}


def friendly_resolution_name(resolution: str) -> str:
    """Map WIDTHxHEIGHT to a common name; unknown values are returned unchanged."""
    return FRIENDLY_RESOLUTIONS.get(resolution, resolution)


def _probe_first_video_stream(video_file: Path, entries: str, output_format: str, ffprobe_binary: str) -> str:
    rc, out, _ = run_command(
        [
            ffprobe_binary,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", f"stream={entries}",
            "-of", output_format,
            str(video_file),
        ]
    )
    if rc != 0:
        return ""
    return out.strip().splitlines()[0].strip() if out.strip() else ""


def get_video_resolution(video_file: Path, ffprobe_binary: str = "ffprobe") -> str:
    """Return the first video stream's resolution as WIDTHxHEIGHT, or 'Unknown'."""
    resolution = _probe_first_video_stream(video_file, "width,height", "csv=s=x:p=0", ffprobe_binary)
    # Some containers add a trailing separator.
    resolution = resolution.rstrip("x")
    return resolution or UNKNOWN


def get_video_codec(video_file: Path, ffprobe_binary: str = "ffprobe") -> str:
    """Return the first video stream's codec name, or 'Unknown'."""
    codec = _probe_first_video_stream(
        video_file, "codec_name", "default=noprint_wrappers=1:nokey=1", ffprobe_binary
    )
    return codec or UNKNOWN


def probe_video(video_file: Path, ffprobe_binary: str = "ffprobe") -> VideoMetadata:
    """Collect resolution and codec information for the input video."""
    resolution = get_video_resolution(video_file, ffprobe_binary)
    metadata = VideoMetadata(
        resolution=resolution,
        friendly_resolution=friendly_resolution_name(resolution),
        codec=get_video_codec(video_file, ffprobe_binary),
    )
    logger.info(
        f"Input video: {Path(video_file).name}, resolution {metadata.friendly_resolution} "
        f"({metadata.resolution}), codec {metadata.codec}"
    )
    return metadata


def resolve_input_file(input_file: Path, videos_dir: Path) -> Path:
    """
    Locate the input video.

    A path that does not exist as given is looked up by name inside
    `videos_dir`.

    Raises:
        ValidationError: If the file is found in neither location
    """
    candidate = Path(input_file).expanduser()
    if candidate.is_file():
        return candidate

    fallback = Path(videos_dir) / candidate.name
    if fallback.is_file():
        logger.info(f"Using video from {videos_dir}: {fallback}")
        return fallback

    raise ValidationError(
        f"Input file '{input_file}' not found (also looked in {videos_dir})",
        field_name="input_file",
        value=str(input_file),
    )


def validate_input_file(video_file: Path, ffprobe_binary: str = "ffprobe") -> Path:
    """
    Check that `video_file` exists and contains a video stream.

    Without ffprobe only the extension is checked, and an unexpected
    extension is a warning rather than an error.

    Raises:
        ValidationError: If the file does not exist or has no video stream
    """
    path = Path(video_file)
    if not path.is_file():
        raise ValidationError(f"Input file '{path}' does not exist", field_name="input_file", value=str(path))

    if is_tool_installed(ffprobe_binary):
        codec_type = _probe_first_video_stream(
            path, "codec_type", "default=noprint_wrappers=1:nokey=1", ffprobe_binary
        )
        if codec_type != "video":
            raise ValidationError(
                f"Input file '{path}' does not contain a valid video stream",
                field_name="input_file",
                value=str(path),
            )
    elif path.suffix.lower() not in VIDEO_EXTENSIONS:
        logger.warning(f"{ffprobe_binary} not found and '{path.suffix}' is not a known video extension")

    return path


def find_default_video(videos_dir: Path) -> Optional[Path]:
    """Return the first video file in `videos_dir` by name, if any."""
    directory = Path(videos_dir)
    if not directory.is_dir():
        return None
    candidates = sorted(p for p in directory.iterdir() if p.suffix.lower() in VIDEO_EXTENSIONS)
    return candidates[0] if candidates else None
