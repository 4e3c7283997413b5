"""
Producer/consumer pair startup.

For each stream slot the launcher starts a producer that serves the input
video on a local HTTP endpoint and a consumer that reads it back and discards
the output, then verifies that both survived their startup grace period.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..classification import LogErrorScanner
from ..media.hw_accel import SOFTWARE_ENCODER
from ..models.config import BenchmarkConfig
from ..models.runtime import HwAccelConfig
from ..system.processes import ProcessHandle, spawn_process
from .shared_state import RuntimeState, TimeoutConstants

logger = logging.getLogger(__name__)

LOCALHOST = "127.0.0.1"


@dataclass
class LaunchResult:
    """Outcome of starting one slot."""
    ok: bool
    producer: Optional[ProcessHandle] = None
    consumer: Optional[ProcessHandle] = None
    diagnostic: str = ""
    # "producer" or "consumer" when ok is False
    failed_role: str = ""


class StreamPairLauncher:
    """
    Starts and verifies the processes of one stream slot.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        state: RuntimeState,
        scanner: Optional[LogErrorScanner] = None,
        spawn: Callable[..., ProcessHandle] = spawn_process,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.state = state
        self.scanner = scanner or LogErrorScanner()
        self._spawn = spawn
        self._sleep = sleep

    def endpoint(self, slot_id: int) -> str:
        return f"http://{LOCALHOST}:{self.config.port_start + slot_id}"

    def build_producer_command(self, slot_id: int, input_file: Path, hw_accel: HwAccelConfig) -> List[str]:
        """ffmpeg arguments for a producer serving `input_file` on the slot's port."""
        media = self.config.media
        encoder = hw_accel.encoder
        if not encoder:
            logger.warning(f"No encoder configured for stream {slot_id}, falling back to {SOFTWARE_ENCODER}")
            encoder = SOFTWARE_ENCODER

        command = [media.ffmpeg_binary, "-loglevel", self.config.ffmpeg_loglevel]
        if hw_accel.uses_hwaccel:
            command += ["-hwaccel", hw_accel.method]
        if hw_accel.decoder:
            command += ["-c:v", hw_accel.decoder]
        command += [
            "-re",
            "-i", str(input_file),
            "-c:v", encoder,
            "-b:v", media.video_bitrate,
            "-c:a", "aac",
            "-f", "mpegts",
            "-listen", "1",
            "-timeout", str(media.listen_timeout_us),
            self.endpoint(slot_id),
        ]
        return command

    def build_consumer_command(self, slot_id: int, hw_accel: HwAccelConfig) -> List[str]:
        """ffmpeg arguments for a consumer reading the slot's endpoint into a null sink."""
        command = [self.config.media.ffmpeg_binary, "-loglevel", self.config.ffmpeg_loglevel]
        if hw_accel.uses_hwaccel:
            command += ["-hwaccel", hw_accel.method]
        # VideoToolbox picks its decoder itself.
        if hw_accel.decoder and hw_accel.method != "videotoolbox":
            command += ["-c:v", hw_accel.decoder]
        command += ["-i", self.endpoint(slot_id), "-f", "null", "-"]
        return command

    def _start(self, command: List[str], role: str, slot_id: int, log_path: Path,
               hw_accel: HwAccelConfig) -> ProcessHandle:
        handle = self._spawn(command, role=role, slot_id=slot_id, log_path=log_path, env=hw_accel.env or None)
        self.state.track(handle)
        return handle

    def _failure(self, role: str, slot_id: int, log_path: Path, **handles) -> LaunchResult:
        diagnostic = self.scanner.tail(log_path, TimeoutConstants.DIAGNOSTIC_TAIL_LINES)
        logger.error(f"{role.capitalize()} for stream {slot_id} failed to start")
        if diagnostic:
            logger.error(f"Last {TimeoutConstants.DIAGNOSTIC_TAIL_LINES} lines of {log_path.name}:\n{diagnostic}")
        return LaunchResult(ok=False, diagnostic=diagnostic, failed_role=role, **handles)

    def launch(self, slot_id: int, input_file: Path, hw_accel: HwAccelConfig) -> LaunchResult:
        """
        Start the producer, verify it, then start and verify the consumer.

        Every spawned handle is registered for cleanup before any check runs,
        so a failed slot never leaks a process.

        Returns:
            A LaunchResult; `ok` is False with a diagnostic tail when either
            process did not start or died during its grace period.
        """
        producer_log = self.config.producer_log(slot_id)
        consumer_log = self.config.consumer_log(slot_id)

        producer_cmd = self.build_producer_command(slot_id, input_file, hw_accel)
        logger.debug(f"Starting producer {slot_id} on port {self.config.port_start + slot_id}")
        try:
            producer = self._start(producer_cmd, "producer", slot_id, producer_log, hw_accel)
        except OSError as e:
            logger.error(f"Could not spawn producer for stream {slot_id}: {e}")
            return LaunchResult(ok=False, diagnostic=str(e), failed_role="producer")

        self._sleep(self.config.startup_grace)

        if hw_accel.method == "videotoolbox" and self.scanner.has_early_videotoolbox_errors(producer_log):
            logger.warning(f"VideoToolbox reported errors while starting producer {slot_id}")
            if not self.config.debug:
                self._sleep(self.config.timing.videotoolbox_extra_grace)

        if not producer.is_alive():
            return self._failure("producer", slot_id, producer_log, producer=producer)

        self._sleep(self.config.timing.consumer_start_delay)

        consumer_cmd = self.build_consumer_command(slot_id, hw_accel)
        logger.debug(f"Starting consumer {slot_id} for {self.endpoint(slot_id)}")
        try:
            consumer = self._start(consumer_cmd, "consumer", slot_id, consumer_log, hw_accel)
        except OSError as e:
            logger.error(f"Could not spawn consumer for stream {slot_id}: {e}")
            return LaunchResult(ok=False, producer=producer, diagnostic=str(e), failed_role="consumer")

        self._sleep(self.config.timing.consumer_check_delay)

        if not consumer.is_alive():
            return self._failure("consumer", slot_id, consumer_log, producer=producer, consumer=consumer)

        logger.debug(f"Stream {slot_id} started (producer PID {producer.pid}, consumer PID {consumer.pid})")
        return LaunchResult(ok=True, producer=producer, consumer=consumer)
