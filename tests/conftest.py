"""
Pytest configuration and shared fixtures for the streambench test suite.

This module provides common fixtures and fakes for all test modules. No test
starts ffmpeg: process handles, clocks, sleeps and metric samplers are
replaced by the fakes below.
"""

import io
import shutil
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from streambench.classification import LogErrorScanner  # noqa: E402
from streambench.models.config import BenchmarkConfig, MediaConfig, TimingConfig  # noqa: E402
from streambench.models.results import TrialResult  # noqa: E402
from streambench.models.runtime import (  # noqa: E402
    BenchmarkRun,
    HostSnapshot,
    HwAccelConfig,
    MetricSample,
    TrialContext,
    VideoMetadata,
)
from streambench.orchestration import (  # noqa: E402
    HealthMonitor,
    LoadController,
    Reaper,
    ResultLogManager,
    RuntimeState,
    StreamPairLauncher,
    TrialAggregator,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Fakes
# ============================================================================


class FakeProcessHandle:
    """Stand-in for ProcessHandle with scriptable liveness."""

    _next_pid = 40000

    def __init__(self, role: str = "producer", slot_id: int = 1, alive: bool = True,
                 log_path: Optional[Path] = None, ignores_sigterm: bool = False,
                 clock: Optional[Callable[[], float]] = None, dies_at: Optional[float] = None):
        FakeProcessHandle._next_pid += 1
        self.pid = FakeProcessHandle._next_pid
        self.role = role
        self.slot_id = slot_id
        self.alive = alive
        self.log_path = log_path
        self.ignores_sigterm = ignores_sigterm
        self.clock = clock
        self.dies_at = dies_at
        self.terminate_calls = 0
        self.kill_calls = 0
        self.closed = False

    @property
    def name(self) -> str:
        return f"{self.role} {self.slot_id} (PID {self.pid})"

    def is_alive(self) -> bool:
        if self.alive and self.dies_at is not None and self.clock() >= self.dies_at:
            self.alive = False
        return self.alive

    def terminate(self) -> None:
        self.terminate_calls += 1
        if not self.ignores_sigterm:
            self.alive = False

    def force_kill(self) -> None:
        self.kill_calls += 1
        self.alive = False

    def wait(self, timeout: float) -> bool:
        return not self.alive

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Monotonic clock advanced only by its own sleep."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSampler:
    """MetricSampler replacement returning scripted IOPS readings."""

    def __init__(self, readings: Optional[List[tuple]] = None, cpu: str = "37"):
        self.readings = list(readings or [(100, 40)])
        self.cpu = cpu
        self.calls = 0

    def sample(self) -> MetricSample:
        read_iops, write_iops = self.readings[min(self.calls, len(self.readings) - 1)]
        self.calls += 1
        return MetricSample(timestamp=float(self.calls), read_iops=read_iops, write_iops=write_iops)

    def cpu_usage(self) -> str:
        return self.cpu


class FakeSpawner:
    """
    Replacement for spawn_process simulating a host that sustains `capacity`
    concurrent streams.

    Slots above the capacity fail in the given `mode`: "producer" and
    "consumer" fail at launch, "runtime" lets the consumer die a few seconds
    into the trial.
    """

    def __init__(self, capacity: Optional[int] = None, mode: str = "producer",
                 clock: Optional[FakeClock] = None, output: str = "frame=  100 fps=30\n"):
        self.capacity = capacity
        self.mode = mode
        self.clock = clock
        self.output = output
        self.calls: List[tuple] = []
        self.handles: List[FakeProcessHandle] = []

    def _over_capacity(self, slot_id: int) -> bool:
        return self.capacity is not None and slot_id > self.capacity

    def __call__(self, command, role, slot_id, log_path, env=None):
        self.calls.append((role, slot_id, list(command), env))
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.write_text(self.output)

        alive, dies_at = True, None
        if self._over_capacity(slot_id):
            if self.mode == role:
                alive = False
            elif self.mode == "runtime" and role == "consumer":
                dies_at = self.clock() + 3.0
        handle = FakeProcessHandle(role=role, slot_id=slot_id, alive=alive, log_path=log_path,
                                   clock=self.clock, dies_at=dies_at)
        self.handles.append(handle)
        return handle

    def roles(self, role: str) -> List[int]:
        return [slot_id for r, slot_id, _, _ in self.calls if r == role]


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fast_timing() -> TimingConfig:
    """Timing with every startup and cleanup delay set to zero."""
    return TimingConfig(
        startup_grace=0.0,
        startup_grace_debug=0.0,
        videotoolbox_extra_grace=0.0,
        consumer_start_delay=0.0,
        consumer_check_delay=0.0,
        inter_launch_delay=0.0,
        inter_launch_delay_debug=0.0,
        check_interval=5.0,
        sample_interval=10.0,
        sample_window=0.01,
        reaper_settle_delay=0.0,
        termination_grace=0.0,
    )


@pytest.fixture
def bench_config(temp_dir, fast_timing) -> BenchmarkConfig:
    """A configuration writing into a temporary directory, without orphan sweeps."""
    return BenchmarkConfig(
        port_start=9100,
        max_streams=5,
        trial_duration=20.0,
        output_dir=temp_dir / "logs",
        run_id_file=temp_dir / "run_id",
        videos_dir=temp_dir / "videos",
        timing=fast_timing,
        media=MediaConfig(sweep_orphans=False),
    )


@pytest.fixture
def hw_accel() -> HwAccelConfig:
    return HwAccelConfig(method="cuda", encoder="h264_nvenc", decoder="h264_cuvid")


@pytest.fixture
def video_metadata() -> VideoMetadata:
    return VideoMetadata(resolution="1920x1080", friendly_resolution="1080p", codec="h264")


@pytest.fixture
def trial_context(hw_accel, video_metadata) -> TrialContext:
    return TrialContext(
        run_id="a" * 64,
        video_file=Path("/videos/bbb_1080p.mp4"),
        hw_accel=hw_accel,
        video=video_metadata,
        host=HostSnapshot(cpu_usage="37", cpu_name="Test CPU, 8 cores", gpu_name="Test GPU"),
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sampler() -> FakeSampler:
    return FakeSampler()


@pytest.fixture
def config_files(temp_dir):
    """Write a complete config.toml into a temporary directory."""
    import toml

    config_file = temp_dir / "config.toml"
    config_data = {
        "benchmark": {
            "port_start": 9000,
            "max_streams": 12,
            "trial_duration": 30,
            "output_dir": str(temp_dir / "out"),
            "debug": False,
            "hw_accel": "vaapi",
        },
        "general": {
            "run_id_file": str(temp_dir / "run_id"),
            "videos_dir": str(temp_dir / "videos"),
            "skip_plots": True,
            "export_parquet": False,
        },
        "timing": {"startup_grace": 4.0, "check_interval": 2.5},
        "media": {"process_name": "ffmpeg-custom", "sweep_orphans": False},
    }
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    return {"config": config_file, "data": config_data, "dir": temp_dir}


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically reset the configuration singleton after each test."""
    yield
    from streambench.config import manager

    manager._CONFIG = None
    manager._CONFIG_FILE_PATH = manager._DEFAULT_CONFIG_FILE_PATH


@pytest.fixture
def handle_factory():
    """Return the FakeProcessHandle class for building process stand-ins."""
    return FakeProcessHandle


@pytest.fixture
def sampler_factory():
    """Return the FakeSampler class for scripting IOPS readings."""
    return FakeSampler


@pytest.fixture
def spawner_factory(fake_clock):
    """Build FakeSpawner instances bound to the shared fake clock."""
    def build(capacity: Optional[int] = None, mode: str = "producer", **kwargs) -> FakeSpawner:
        return FakeSpawner(capacity=capacity, mode=mode, clock=fake_clock, **kwargs)
    return build


@pytest.fixture
def trial_result_factory():
    """Build TrialResult instances with overridable defaults."""
    def build(**overrides) -> TrialResult:
        values = dict(
            iteration=1,
            requested_streams=1,
            active_count=1,
            failed_count=0,
            cpu_usage="37",
            cpu_name="Test CPU, 8 cores",
            gpu_name="Test GPU",
            resolution="1080p",
            input_codec="h264",
            encoder_name="h264_nvenc",
            avg_read_iops=100,
            avg_write_iops=40,
            run_id="a" * 64,
            video_file="bbb_1080p.mp4",
            timestamp="2024-05-01 12:00:00",
        )
        values.update(overrides)
        return TrialResult(**values)
    return build


@pytest.fixture
def bench_run(hw_accel, video_metadata) -> BenchmarkRun:
    return BenchmarkRun(
        run_id="a" * 64,
        hw_accel=hw_accel,
        video=video_metadata,
        input_file=Path("/videos/bbb_1080p.mp4"),
    )


@pytest.fixture
def controller_factory(bench_config, fake_clock):
    """
    Assemble a LoadController with real components wired to fakes.

    Processes come from the given spawner, time from the shared fake clock and
    IOPS from a FakeSampler. Output is captured in a StringIO.
    """
    def build(spawner, config: Optional[BenchmarkConfig] = None, sampler=None,
              state: Optional[RuntimeState] = None) -> SimpleNamespace:
        config = config or bench_config
        state = state or RuntimeState()
        sampler = sampler or FakeSampler()
        out = io.StringIO()
        scanner = LogErrorScanner()
        log_manager = ResultLogManager(config)
        log_manager.initialize_logs()
        reaper = Reaper(
            config, state, sleep=fake_clock.sleep, clock=fake_clock,
            find_orphans=lambda name: [], kill_orphans=lambda procs, timeout: 0,
        )
        controller = LoadController(
            config=config,
            state=state,
            launcher=StreamPairLauncher(config, state, scanner, spawn=spawner, sleep=fake_clock.sleep),
            monitor=HealthMonitor(config, sampler, scanner, state=state, out=out,
                                  clock=fake_clock, sleep=fake_clock.sleep),
            aggregator=TrialAggregator(config, log_manager, sampler, out=out,
                                       now=lambda: datetime(2024, 5, 1, 12, 0, 0)),
            reaper=reaper,
            sampler=sampler,
            out=out,
            sleep=fake_clock.sleep,
            host_snapshot=lambda s: HostSnapshot(cpu_usage="37", cpu_name="Test CPU, 8 cores",
                                                 gpu_name="Test GPU"),
            gpu_reporter=lambda: None,
        )
        return SimpleNamespace(controller=controller, state=state, out=out,
                               log_manager=log_manager, sampler=sampler, config=config)
    return build
