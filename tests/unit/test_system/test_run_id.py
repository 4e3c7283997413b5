"""
Unit tests for the persisted run identifier.
"""

import re
from unittest.mock import patch

import pytest

from streambench.system.run_id import generate_run_id, load_or_create_run_id
from streambench.validation import SetupFailure


@pytest.mark.unit
class TestRunId:
    def test_generated_id_is_sha256_hex(self):
        run_id = generate_run_id()
        assert re.fullmatch(r"[0-9a-f]{64}", run_id)

    def test_generated_ids_differ(self):
        assert generate_run_id() != generate_run_id()

    def test_created_and_persisted(self, temp_dir):
        path = temp_dir / "nested" / "run_id"
        run_id = load_or_create_run_id(path)
        assert path.read_text().strip() == run_id

    def test_reused_across_invocations(self, temp_dir):
        path = temp_dir / "run_id"
        assert load_or_create_run_id(path) == load_or_create_run_id(path)

    def test_existing_value_is_stripped(self, temp_dir):
        path = temp_dir / "run_id"
        path.write_text("  my-fixed-id \n")
        assert load_or_create_run_id(path) == "my-fixed-id"

    def test_empty_file_is_regenerated(self, temp_dir):
        path = temp_dir / "run_id"
        path.write_text("\n")
        run_id = load_or_create_run_id(path)
        assert len(run_id) == 64

    def test_unwritable_location_is_setup_failure(self, temp_dir):
        path = temp_dir / "run_id"
        with patch("pathlib.Path.write_text", side_effect=PermissionError("read-only")):
            with pytest.raises(SetupFailure):
                load_or_create_run_id(path)
