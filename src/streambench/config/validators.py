"""
Configuration validation utilities.

Each table of `config.toml` is validated separately and turned into the
matching frozen dataclass. Missing keys take their defaults.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import BenchmarkConfig, MediaConfig, TimingConfig
from ..validation import (
    ValidationError,
    validate_boolean,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

HW_ACCEL_CHOICES = ["auto", "videotoolbox", "qsv", "cuda", "vaapi", "none"]

# Upper bound for any single delay; anything larger is almost certainly a typo.
MAX_DELAY_SECONDS = 3600.0


def validate_timing_config(timing_data: Dict[str, Any]) -> TimingConfig:
    """
    Validate the `[timing]` table.

    Args:
        timing_data: Raw timing configuration from TOML

    Returns:
        Validated TimingConfig instance

    Raises:
        ValidationError: If validation fails
    """
    defaults = TimingConfig()
    values = {}
    for name in TimingConfig.__dataclass_fields__:
        min_value = 0.001 if name in ("check_interval", "sample_interval", "sample_window") else 0.0
        values[name] = validate_positive_float(
            timing_data.get(name, getattr(defaults, name)),
            min_value=min_value,
            max_value=MAX_DELAY_SECONDS,
            field_name=f"timing.{name}",
        )

    unknown = set(timing_data) - set(values)
    if unknown:
        logger.warning(f"Ignoring unknown [timing] keys: {', '.join(sorted(unknown))}")

    return TimingConfig(**values)


def validate_media_config(media_data: Dict[str, Any]) -> MediaConfig:
    """
    Validate the `[media]` table.

    Args:
        media_data: Raw media configuration from TOML

    Returns:
        Validated MediaConfig instance
    """
    defaults = MediaConfig()
    return MediaConfig(
        ffmpeg_binary=validate_non_empty_string(
            media_data.get("ffmpeg_binary", defaults.ffmpeg_binary),
            field_name="media.ffmpeg_binary",
        ),
        ffprobe_binary=validate_non_empty_string(
            media_data.get("ffprobe_binary", defaults.ffprobe_binary),
            field_name="media.ffprobe_binary",
        ),
        process_name=validate_non_empty_string(
            media_data.get("process_name", defaults.process_name),
            field_name="media.process_name",
        ),
        video_bitrate=validate_non_empty_string(
            media_data.get("video_bitrate", defaults.video_bitrate),
            field_name="media.video_bitrate",
        ),
        listen_timeout_us=validate_positive_integer(
            media_data.get("listen_timeout_us", defaults.listen_timeout_us),
            min_value=1,
            field_name="media.listen_timeout_us",
        ),
        sweep_orphans=validate_boolean(
            media_data.get("sweep_orphans", defaults.sweep_orphans),
            field_name="media.sweep_orphans",
        ),
    )


def validate_benchmark_config(config_data: Dict[str, Any]) -> BenchmarkConfig:
    """
    Validate the whole configuration document.

    Args:
        config_data: Parsed `config.toml` content

    Returns:
        Validated BenchmarkConfig instance

    Raises:
        ValidationError: If validation fails
    """
    benchmark = config_data.get("benchmark", {})
    general = config_data.get("general", {})
    defaults = BenchmarkConfig()

    if not isinstance(benchmark, dict) or not isinstance(general, dict):
        raise ValidationError("[benchmark] and [general] must be tables")

    port_start = validate_positive_integer(
        benchmark.get("port_start", defaults.port_start),
        min_value=1024,
        max_value=65000,
        field_name="benchmark.port_start",
    )
    max_streams = validate_positive_integer(
        benchmark.get("max_streams", defaults.max_streams),
        min_value=1,
        max_value=1000,
        field_name="benchmark.max_streams",
    )
    if port_start + max_streams > 65535:
        raise ValidationError(
            f"benchmark.port_start + benchmark.max_streams exceeds 65535 ({port_start + max_streams})",
            field_name="benchmark.max_streams",
            value=max_streams,
        )

    return BenchmarkConfig(
        port_start=port_start,
        max_streams=max_streams,
        trial_duration=validate_positive_float(
            benchmark.get("trial_duration", defaults.trial_duration),
            min_value=1.0,
            max_value=86400.0,
            field_name="benchmark.trial_duration",
        ),
        output_dir=Path(
            validate_non_empty_string(
                benchmark.get("output_dir", str(defaults.output_dir)),
                field_name="benchmark.output_dir",
            )
        ),
        debug=validate_boolean(
            benchmark.get("debug", defaults.debug), field_name="benchmark.debug"
        ),
        hw_accel=validate_enum_choice(
            benchmark.get("hw_accel", defaults.hw_accel),
            valid_choices=HW_ACCEL_CHOICES,
            field_name="benchmark.hw_accel",
        ),
        run_id_file=Path(
            validate_non_empty_string(
                general.get("run_id_file", str(defaults.run_id_file)),
                field_name="general.run_id_file",
            )
        ).expanduser(),
        videos_dir=Path(
            validate_non_empty_string(
                general.get("videos_dir", str(defaults.videos_dir)),
                field_name="general.videos_dir",
            )
        ),
        skip_plots=validate_boolean(
            general.get("skip_plots", defaults.skip_plots), field_name="general.skip_plots"
        ),
        export_parquet=validate_boolean(
            general.get("export_parquet", defaults.export_parquet),
            field_name="general.export_parquet",
        ),
        timing=validate_timing_config(config_data.get("timing", {})),
        media=validate_media_config(config_data.get("media", {})),
    )
