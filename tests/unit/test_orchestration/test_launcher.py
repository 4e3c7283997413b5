"""
Unit tests for producer/consumer pair startup.
"""

from dataclasses import replace
from pathlib import Path

import pytest

from streambench.models.runtime import HwAccelConfig
from streambench.orchestration import RuntimeState, StreamPairLauncher

INPUT = Path("/videos/bbb_1080p.mp4")


def make_launcher(config, spawner, sleeps=None):
    state = RuntimeState()
    recorder = sleeps if sleeps is not None else []
    launcher = StreamPairLauncher(config, state, spawn=spawner, sleep=recorder.append)
    return launcher, state


@pytest.mark.unit
class TestCommands:
    def test_producer_command(self, bench_config, hw_accel, spawner_factory):
        launcher, _ = make_launcher(bench_config, spawner_factory())
        command = launcher.build_producer_command(3, INPUT, hw_accel)

        assert command[:3] == ["ffmpeg", "-loglevel", "warning"]
        assert command[command.index("-hwaccel") + 1] == "cuda"
        assert command[command.index("-i") + 1] == str(INPUT)
        assert "h264_cuvid" in command
        assert "h264_nvenc" in command
        assert command[command.index("-listen") + 1] == "1"
        assert command[-1] == "http://127.0.0.1:9103"

    def test_consumer_command(self, bench_config, hw_accel, spawner_factory):
        launcher, _ = make_launcher(bench_config, spawner_factory())
        command = launcher.build_consumer_command(2, hw_accel)

        assert command[command.index("-i") + 1] == "http://127.0.0.1:9102"
        assert command[-3:] == ["-f", "null", "-"]
        assert "h264_cuvid" in command

    def test_software_path_has_no_hwaccel(self, bench_config, spawner_factory):
        launcher, _ = make_launcher(bench_config, spawner_factory())
        software = HwAccelConfig(method="none", encoder="libx264")
        assert "-hwaccel" not in launcher.build_producer_command(1, INPUT, software)
        assert "-hwaccel" not in launcher.build_consumer_command(1, software)

    def test_videotoolbox_consumer_has_no_decoder(self, bench_config, spawner_factory):
        launcher, _ = make_launcher(bench_config, spawner_factory())
        vt = HwAccelConfig(method="videotoolbox", encoder="h264_videotoolbox", decoder="h264_vt")
        assert "h264_vt" not in launcher.build_consumer_command(1, vt)

    def test_debug_uses_info_loglevel(self, bench_config, hw_accel, spawner_factory):
        launcher, _ = make_launcher(bench_config.with_overrides(debug=True), spawner_factory())
        command = launcher.build_consumer_command(1, hw_accel)
        assert command[command.index("-loglevel") + 1] == "info"

    def test_empty_encoder_falls_back_to_software(self, bench_config, spawner_factory):
        launcher, _ = make_launcher(bench_config, spawner_factory())
        command = launcher.build_producer_command(1, INPUT, HwAccelConfig(method="none", encoder=""))
        assert "libx264" in command


@pytest.mark.unit
class TestLaunch:
    def test_successful_launch(self, bench_config, hw_accel, spawner_factory):
        """Both processes are started, verified and registered for cleanup."""
        spawner = spawner_factory()
        launcher, state = make_launcher(bench_config, spawner)

        result = launcher.launch(1, INPUT, hw_accel)

        assert result.ok
        assert result.producer.role == "producer"
        assert result.consumer.role == "consumer"
        assert [r for r, *_ in spawner.calls] == ["producer", "consumer"]
        assert state.tracked_processes == [result.producer, result.consumer]
        assert spawner.calls[0][3] is None

    def test_producer_death_skips_consumer(self, bench_config, hw_accel, spawner_factory):
        """A producer that dies during its grace period fails the slot."""
        spawner = spawner_factory(capacity=0, mode="producer", output="Error: device busy\n")
        launcher, state = make_launcher(bench_config, spawner)

        result = launcher.launch(1, INPUT, hw_accel)

        assert not result.ok
        assert result.failed_role == "producer"
        assert "device busy" in result.diagnostic
        assert spawner.roles("consumer") == []
        assert state.tracked_processes == [result.producer]

    def test_consumer_death(self, bench_config, hw_accel, spawner_factory):
        spawner = spawner_factory(capacity=0, mode="consumer")
        launcher, state = make_launcher(bench_config, spawner)

        result = launcher.launch(1, INPUT, hw_accel)

        assert not result.ok
        assert result.failed_role == "consumer"
        assert len(state.tracked_processes) == 2

    def test_spawn_error(self, bench_config, hw_accel):
        def broken_spawn(command, role, slot_id, log_path, env=None):
            raise FileNotFoundError("ffmpeg")

        launcher, state = make_launcher(bench_config, broken_spawn)
        result = launcher.launch(1, INPUT, hw_accel)

        assert not result.ok
        assert result.failed_role == "producer"
        assert state.tracked_processes == []

    def test_waits_follow_timing(self, bench_config, hw_accel, spawner_factory):
        timing = replace(bench_config.timing, startup_grace=8.0, consumer_start_delay=1.0,
                         consumer_check_delay=2.0)
        config = replace(bench_config, timing=timing)
        sleeps = []
        launcher, _ = make_launcher(config, spawner_factory(), sleeps)

        launcher.launch(1, INPUT, hw_accel)

        assert sleeps == [8.0, 1.0, 2.0]

    def test_videotoolbox_early_errors_add_grace(self, bench_config, spawner_factory):
        timing = replace(bench_config.timing, videotoolbox_extra_grace=3.0)
        config = replace(bench_config, timing=timing)
        sleeps = []
        spawner = spawner_factory(output="[h264_videotoolbox] Error: cannot create session\n")
        launcher, _ = make_launcher(config, spawner, sleeps)
        vt = HwAccelConfig(method="videotoolbox", encoder="h264_videotoolbox",
                           env={"VIDEOTOOLS_ALLOW_FALLBACK": "1"})

        launcher.launch(1, INPUT, vt)

        assert 3.0 in sleeps
        assert spawner.calls[0][3] == {"VIDEOTOOLS_ALLOW_FALLBACK": "1"}
