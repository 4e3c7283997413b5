"""
Sample video library.

Downloads the fixed set of Blender open-movie samples used for benchmarking
and lists the videos available locally.
"""

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import httpx

from .video_info import VIDEO_EXTENSIONS

logger = logging.getLogger(__name__)

SAMPLE_VIDEO_URLS: List[str] = [
    "https://download.blender.org/peach/bigbuckbunny_movies/big_buck_bunny_480p_h264.mov",
    "https://download.blender.org/peach/bigbuckbunny_movies/big_buck_bunny_720p_h264.mov",
    "https://download.blender.org/peach/bigbuckbunny_movies/big_buck_bunny_1080p_h264.mov",
    "https://download.blender.org/demo/movies/BBB/bbb_sunflower_1080p_60fps_normal.mp4.zip",
    "https://download.blender.org/demo/movies/BBB/bbb_sunflower_2160p_60fps_normal.mp4.zip",
]

DOWNLOAD_TIMEOUT = httpx.Timeout(30.0, read=300.0)
CHUNK_SIZE = 1024 * 1024


@dataclass
class DownloadReport:
    """Outcome counts of one download pass."""

    downloaded: int = 0
    skipped: int = 0
    failed: int = 0


def _filename_from_url(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[-1]


def _download_file(client: httpx.Client, url: str, destination: Path) -> None:
    partial = destination.with_name(destination.name + ".part")
    with client.stream("GET", url) as response:
        response.raise_for_status()
        with open(partial, "wb") as f:
            for chunk in response.iter_bytes(CHUNK_SIZE):
                f.write(chunk)
    partial.replace(destination)


def _extract_zip(archive: Path, target_dir: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        zf.extractall(target_dir)
    archive.unlink()


def download_videos(
    videos_dir: Path,
    urls: Optional[List[str]] = None,
    client: Optional[httpx.Client] = None,
) -> DownloadReport:
    """
    Download the sample videos into `videos_dir`.

    Existing non-empty files and already extracted archives are skipped.
    Archives are extracted and then removed.

    Args:
        videos_dir: Target directory, created if needed
        urls: URLs to fetch (defaults to SAMPLE_VIDEO_URLS)
        client: Optional pre-configured HTTP client

    Returns:
        Counts of downloaded, skipped and failed files.
    """
    videos_dir = Path(videos_dir)
    videos_dir.mkdir(parents=True, exist_ok=True)
    report = DownloadReport()

    owns_client = client is None
    http = client or httpx.Client(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True)
    try:
        for url in urls if urls is not None else SAMPLE_VIDEO_URLS:
            filename = _filename_from_url(url)
            destination = videos_dir / filename
            is_zip = filename.endswith(".zip")
            extracted = videos_dir / filename[: -len(".zip")] if is_zip else None

            if extracted is not None and extracted.is_file() and extracted.stat().st_size > 0:
                logger.info(f"{extracted.name} already extracted, skipping")
                report.skipped += 1
                continue
            if destination.is_file() and destination.stat().st_size > 0 and not is_zip:
                logger.info(f"{filename} already exists, skipping")
                report.skipped += 1
                continue

            logger.info(f"Downloading {filename}...")
            try:
                _download_file(http, url, destination)
            except (httpx.HTTPError, OSError) as e:
                logger.error(f"Failed to download {filename}: {e}")
                destination.with_name(destination.name + ".part").unlink(missing_ok=True)
                report.failed += 1
                continue

            if destination.stat().st_size == 0:
                logger.error(f"Downloaded file {filename} is empty")
                destination.unlink()
                report.failed += 1
                continue

            if is_zip:
                try:
                    _extract_zip(destination, videos_dir)
                except (zipfile.BadZipFile, OSError) as e:
                    logger.error(f"Failed to extract {filename}: {e}")
                    report.failed += 1
                    continue
                logger.info(f"Extracted {filename}")

            report.downloaded += 1
    finally:
        if owns_client:
            http.close()

    logger.info(
        f"Download complete: {report.downloaded} downloaded, {report.skipped} skipped, "
        f"{report.failed} failed"
    )
    return report


def list_available_videos(videos_dir: Path) -> List[Tuple[str, int]]:
    """Return (file name, size in bytes) for every video in `videos_dir`."""
    directory = Path(videos_dir)
    if not directory.is_dir():
        return []
    return [
        (p.name, p.stat().st_size)
        for p in sorted(directory.iterdir())
        if p.is_file() and p.suffix.lower() in VIDEO_EXTENSIONS
    ]


def format_size(num_bytes: int) -> str:
    """Human-readable file size."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size /= 1024
