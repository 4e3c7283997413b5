"""
Hardware acceleration detection.

Maps an acceleration method to the encoder/decoder pair passed to ffmpeg, and
detects the best available method from `ffmpeg -hwaccels` when asked for
`auto`. The chosen encoder is checked against `ffmpeg -encoders`; an encoder
the local build does not provide falls back to software encoding.
"""

import logging
from typing import Dict, List, Tuple

from ..models.runtime import HwAccelConfig
from ..system.commands import run_command

logger = logging.getLogger(__name__)

SUPPORTED_METHODS: List[str] = ["auto", "videotoolbox", "qsv", "cuda", "vaapi", "none"]

# Order in which `auto` probes the methods ffmpeg reports.
AUTO_DETECT_ORDER: List[str] = ["cuda", "videotoolbox", "vaapi", "qsv", "opencl"]

SOFTWARE_ENCODER = "libx264"

# method -> (encoder, decoder)
_METHOD_CODECS: Dict[str, Tuple[str, str]] = {
    "cuda": ("h264_nvenc", "h264_cuvid"),
    "videotoolbox": ("h264_videotoolbox", ""),
    "vaapi": ("h264_vaapi", "h264_vaapi"),
    "qsv": ("h264_qsv", "h264_qsv"),
    "none": (SOFTWARE_ENCODER, ""),
}

_METHOD_ENV: Dict[str, Dict[str, str]] = {
    "videotoolbox": {"VIDEOTOOLS_ALLOW_FALLBACK": "1"},
}


def _list_ffmpeg_section(ffmpeg_binary: str, flag: str) -> str:
    rc, out, err = run_command([ffmpeg_binary, "-hide_banner", flag])
    if rc != 0:
        logger.warning(f"'{ffmpeg_binary} {flag}' failed: {err.strip()[:200]}")
        return ""
    return out


def available_hwaccels(ffmpeg_binary: str = "ffmpeg") -> List[str]:
    """Return the acceleration methods compiled into ffmpeg."""
    output = _list_ffmpeg_section(ffmpeg_binary, "-hwaccels")
    methods = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.endswith(":"):
            continue
        methods.append(line)
    return methods


def available_encoders(ffmpeg_binary: str = "ffmpeg") -> str:
    """Return the raw `ffmpeg -encoders` listing."""
    return _list_ffmpeg_section(ffmpeg_binary, "-encoders")


def _encoder_listed(encoder: str, encoders_output: str) -> bool:
    for line in encoders_output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[1] == encoder:
            return True
    return False


def config_for_method(method: str) -> HwAccelConfig:
    """Build the fixed encoder/decoder configuration for a known method."""
    encoder, decoder = _METHOD_CODECS[method]
    return HwAccelConfig(
        method=method,
        encoder=encoder,
        decoder=decoder,
        env=dict(_METHOD_ENV.get(method, {})),
    )


def auto_detect(ffmpeg_binary: str = "ffmpeg", encoders_output: str = "") -> HwAccelConfig:
    """Pick the first available method in detection order, or software encoding."""
    methods = available_hwaccels(ffmpeg_binary)
    logger.debug(f"ffmpeg reports hardware acceleration methods: {methods}")

    for method in AUTO_DETECT_ORDER:
        if method not in methods:
            continue
        if method == "opencl":
            # OpenCL has no encoder of its own.
            if not encoders_output:
                encoders_output = available_encoders(ffmpeg_binary)
            encoder = "h264_videotoolbox" if _encoder_listed("h264_videotoolbox", encoders_output) else SOFTWARE_ENCODER
            logger.info(f"Detected OpenCL acceleration, using encoder {encoder}")
            return HwAccelConfig(method="opencl", encoder=encoder, decoder="")
        logger.info(f"Detected hardware acceleration method: {method}")
        return config_for_method(method)

    logger.info("No hardware acceleration detected, using software encoding")
    return config_for_method("none")


def detect_hw_accel(requested: str = "auto", ffmpeg_binary: str = "ffmpeg") -> HwAccelConfig:
    """
    Resolve the requested acceleration method into an `HwAccelConfig`.

    Args:
        requested: One of SUPPORTED_METHODS; anything else is auto-detected
        ffmpeg_binary: The ffmpeg executable to query

    Returns:
        The configuration to use. Falls back to software encoding when the
        selected encoder is not available in this ffmpeg build.
    """
    method = (requested or "auto").strip().lower()

    if method == "auto":
        hw_config = auto_detect(ffmpeg_binary)
    elif method in _METHOD_CODECS:
        hw_config = config_for_method(method)
    else:
        logger.warning(f"Unknown hardware acceleration method '{requested}', auto-detecting")
        hw_config = auto_detect(ffmpeg_binary)

    if hw_config.encoder != SOFTWARE_ENCODER:
        encoders_output = available_encoders(ffmpeg_binary)
        if not _encoder_listed(hw_config.encoder, encoders_output):
            logger.warning(
                f"Encoder {hw_config.encoder} not available in this ffmpeg build, "
                f"falling back to {SOFTWARE_ENCODER}"
            )
            hw_config = config_for_method("none")

    logger.info(
        f"Hardware acceleration: {hw_config.method}, encoder: {hw_config.encoder}, "
        f"decoder: {hw_config.decoder or 'default'}"
    )
    return hw_config
