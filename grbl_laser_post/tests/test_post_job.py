"""Tests for the post_job command-line entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from grbl_laser_post.job_ir.operations import RapidMove, SectionEnd, SectionStart
from grbl_laser_post.scripts.post_job import load_job, main
from grbl_laser_post.utils.logging_config import (
    ContextFormatter,
    pop_context,
    setup_logging,
)

OUTLINE_JOB = """\
operations:
  - {op: section_start, jet_mode: etch, comment: Cut outline}
  - {op: rapid, x: 0, y: 0, z: 0}
  - {op: power, on: true}
  - {op: linear, x: 10, y: 0, z: 0, feed: 500}
  - {op: power, on: false}
  - {op: section_end}
"""


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    setup_logging(log_level="WARNING", to_stderr=False, capture_warnings=False)
    pop_context()


@pytest.fixture()
def job_file(tmp_path: Path) -> Path:
    path = tmp_path / "outline.yaml"
    path.write_text(OUTLINE_JOB)
    return path


# ---------------------------------------------------------------------------
# Job files
# ---------------------------------------------------------------------------


class TestLoadJob:
    def test_mapping_root(self, job_file: Path) -> None:
        ops = load_job(job_file)
        assert ops[0] == SectionStart(jet_mode="etch", comment="Cut outline")
        assert ops[-1] == SectionEnd()
        assert len(ops) == 6

    def test_list_root(self, tmp_path: Path) -> None:
        path = tmp_path / "job.yaml"
        path.write_text("- {op: section_start}\n- {op: rapid, x: 1, y: 2}\n")
        assert load_job(path) == [SectionStart(), RapidMove(1.0, 2.0, 0.0)]

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "job.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="no operations list"):
            load_job(path)


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_writes_output_file(self, job_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "outline.nc"
        assert main(["--job", str(job_file), "--output", str(out)]) == 0
        lines = out.read_text().splitlines()
        assert lines[-3:] == ["M5", "(End of job)", "M30"]
        assert "(Cut outline)" in lines
        assert "G1 X10 F500" in lines

    def test_stdout(
        self, job_file: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["--job", str(job_file), "--log-level", "ERROR"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("(grbl_laser_post ")
        assert out.endswith("M30\n")

    def test_custom_config(
        self, job_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        cfg = tmp_path / "post.yaml"
        cfg.write_text("set_position_on_start: true\nhome_on_end: true\n")
        assert main(["-j", str(job_file), "-c", str(cfg)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert "G92 X0 Y0 Z0" in lines
        assert "$H" in lines

    def test_unknown_op_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("- {op: teleport}\n")
        assert main(["--job", str(path)]) == 1

    def test_missing_job_fails(self, tmp_path: Path) -> None:
        assert main(["--job", str(tmp_path / "absent.yaml")]) == 1

    def test_invalid_config_fails(self, job_file: Path, tmp_path: Path) -> None:
        cfg = tmp_path / "post.yaml"
        cfg.write_text("units: furlong\n")
        assert main(["--job", str(job_file), "--config", str(cfg)]) == 1

    def test_lifecycle_error_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "job.yaml"
        path.write_text("- {op: power, on: true}\n")
        assert main(["--job", str(path)]) == 1

    def test_unwritable_output_fails(self, job_file: Path, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        out = blocker / "outline.nc"
        assert main(["--job", str(job_file), "--output", str(out)]) == 1
        assert blocker.read_text() == ""

    def test_job_context_cleared(self, job_file: Path, tmp_path: Path) -> None:
        main(["--job", str(job_file), "--output", str(tmp_path / "a.nc")])
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
        payload = json.loads(ContextFormatter("json").format(record))
        assert payload["app"] == "post"
        assert "job" not in payload

    def test_no_output_on_failure(self, tmp_path: Path) -> None:
        job = tmp_path / "job.yaml"
        job.write_text("- {op: section_end}\n")
        out = tmp_path / "job.nc"
        assert main(["--job", str(job), "--output", str(out)]) == 1
        assert not out.exists()
