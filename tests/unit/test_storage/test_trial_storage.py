"""
Unit tests for converting trial logs and results to tables.
"""

import json

import polars as pl
import pytest

from streambench.models.results import PERSISTENT_LOG_HEADER, RUN_LOG_HEADER
from streambench.storage import export_run, load_trial_log, run_metadata, trials_to_dataframe


@pytest.mark.unit
class TestTrialsToDataframe:
    def test_columns_and_types(self, trial_result_factory):
        trials = [trial_result_factory(iteration=i, requested_streams=i) for i in (1, 2)]

        df = trials_to_dataframe(trials)

        assert df.columns == PERSISTENT_LOG_HEADER
        assert df["StreamCount"].to_list() == [1, 2]
        assert df["StreamCount"].dtype == pl.Int64
        assert df["CPUUsage"].dtype == pl.Int64
        assert df["CPUUsage"].to_list() == [37, 37]

    def test_empty(self):
        df = trials_to_dataframe([])
        assert df.is_empty()
        assert df.columns == PERSISTENT_LOG_HEADER

    def test_non_numeric_cpu_usage_becomes_null(self, trial_result_factory):
        df = trials_to_dataframe([trial_result_factory(cpu_usage="N/A")])
        assert df["CPUUsage"].to_list() == [None]


@pytest.mark.unit
class TestLoadTrialLog:
    def test_run_log(self, temp_dir, trial_result_factory):
        path = temp_dir / "stream.log"
        lines = [",".join(RUN_LOG_HEADER)] + [
            trial_result_factory(iteration=i, requested_streams=i).to_run_line() for i in (1, 2, 3)
        ]
        path.write_text("\n".join(lines) + "\n")

        df = load_trial_log(path)

        assert df.columns == RUN_LOG_HEADER
        assert df["StreamCount"].to_list() == [1, 2, 3]
        assert df["CPUName"][0] == "Test CPU; 8 cores"

    def test_persistent_log(self, temp_dir, trial_result_factory):
        path = temp_dir / "stream_all.log"
        path.write_text(",".join(PERSISTENT_LOG_HEADER) + "\n"
                        + trial_result_factory().to_persistent_line() + "\n")

        df = load_trial_log(path)

        assert df["Timestamp"].to_list() == ["2024-05-01 12:00:00"]

    def test_foreign_header(self, temp_dir):
        path = temp_dir / "other.csv"
        path.write_text("a,b,c\n1,2,3\n")
        with pytest.raises(ValueError):
            load_trial_log(path)


@pytest.mark.unit
class TestExportRun:
    def test_writes_parquet_and_metadata(self, temp_dir, bench_run, trial_result_factory):
        bench_run.trials.extend([trial_result_factory(iteration=i, requested_streams=i) for i in (1, 2)])
        bench_run.max_successful_streams = 2

        path = export_run(bench_run, temp_dir / "trial_results.parquet")

        assert pl.read_parquet(path)["StreamCount"].to_list() == [1, 2]
        metadata = json.loads((temp_dir / "benchmark_run.json").read_text())
        assert metadata == run_metadata(bench_run)
        assert metadata["max_successful_streams"] == 2
        assert metadata["encoder"] == "h264_nvenc"
