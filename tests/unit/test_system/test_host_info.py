"""
Unit tests for CPU/GPU identification and GPU resource logging.
"""

import logging
from unittest.mock import patch

import pytest

from streambench.system import host_info


@pytest.fixture(autouse=True)
def clear_name_caches():
    host_info.get_cpu_name.cache_clear()
    host_info.get_gpu_name.cache_clear()
    yield
    host_info.get_cpu_name.cache_clear()
    host_info.get_gpu_name.cache_clear()


@pytest.mark.unit
class TestGpuName:
    def test_nvidia_smi(self):
        with patch.object(host_info, "is_tool_installed", side_effect=lambda name: name == "nvidia-smi"), \
             patch.object(host_info, "run_command", return_value=(0, "NVIDIA GeForce RTX 4090\n", "")):
            assert host_info.get_gpu_name() == "NVIDIA GeForce RTX 4090"

    def test_lspci_fallback(self, monkeypatch):
        monkeypatch.setattr(host_info.sys, "platform", "freebsd")
        lspci = "00:02.0 VGA compatible controller: Intel Corporation UHD Graphics 630\n"
        with patch.object(host_info, "is_tool_installed", side_effect=lambda name: name == "lspci"), \
             patch.object(host_info, "run_command", return_value=(0, lspci, "")):
            assert host_info.get_gpu_name() == "Intel Corporation UHD Graphics 630"

    def test_unknown_when_nothing_available(self, monkeypatch):
        monkeypatch.setattr(host_info.sys, "platform", "freebsd")
        with patch.object(host_info, "is_tool_installed", return_value=False):
            assert host_info.get_gpu_name() == "Unknown"


@pytest.mark.unit
class TestCpuName:
    def test_darwin_sysctl(self, monkeypatch):
        monkeypatch.setattr(host_info.sys, "platform", "darwin")
        with patch.object(host_info, "run_command", return_value=(0, "Apple M2 Pro\n", "")):
            assert host_info.get_cpu_name() == "Apple M2 Pro"

    def test_falls_back_to_unknown(self, monkeypatch):
        monkeypatch.setattr(host_info.sys, "platform", "freebsd")
        monkeypatch.setattr(host_info.platform, "processor", lambda: "")
        with patch.object(host_info, "is_tool_installed", return_value=False):
            assert host_info.get_cpu_name() == "Unknown"


@pytest.mark.unit
class TestHostSnapshot:
    def test_snapshot_combines_readings(self, fake_sampler):
        with patch.object(host_info, "get_cpu_name", return_value="CPU X"), \
             patch.object(host_info, "get_gpu_name", return_value="GPU Y"):
            snapshot = host_info.take_host_snapshot(fake_sampler)
        assert snapshot.cpu_usage == "37"
        assert snapshot.cpu_name == "CPU X"
        assert snapshot.gpu_name == "GPU Y"


@pytest.mark.unit
class TestGpuResources:
    def test_logs_nvidia_statistics(self, caplog):
        with patch.object(host_info, "is_tool_installed", side_effect=lambda name: name == "nvidia-smi"), \
             patch.object(host_info, "run_command", return_value=(0, "87, 5120, 71\n", "")):
            with caplog.at_level(logging.DEBUG, logger="streambench.system.host_info"):
                host_info.log_gpu_resources()
        assert "GPU Usage: 87%, Memory: 5120 MiB, Temperature: 71C" in caplog.text
