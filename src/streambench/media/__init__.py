"""
Media tool collaborators: hardware acceleration, video metadata and the
sample video library.
"""

from .downloads import SAMPLE_VIDEO_URLS, DownloadReport, download_videos, format_size, list_available_videos
from .hw_accel import SUPPORTED_METHODS, detect_hw_accel
from .video_info import (
    friendly_resolution_name,
    get_video_codec,
    get_video_resolution,
    probe_video,
    resolve_input_file,
    validate_input_file,
)

__all__ = [
    "SAMPLE_VIDEO_URLS",
    "DownloadReport",
    "download_videos",
    "format_size",
    "list_available_videos",
    "SUPPORTED_METHODS",
    "detect_hw_accel",
    "friendly_resolution_name",
    "get_video_codec",
    "get_video_resolution",
    "probe_video",
    "resolve_input_file",
    "validate_input_file",
]
