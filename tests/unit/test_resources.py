"""Tests for acc_common.resources — resource directory discovery."""

import json
import logging
from pathlib import Path

import pytest

from src.acc_common.errors import ResourceDirNotFoundError
from src.acc_common.resources import (
    ResourceCheckError,
    check_resource_dir,
    default_candidates,
    find_resource_dir,
)


def _make_resource_dir(path: Path, info: object) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    text = info if isinstance(info, str) else json.dumps(info)
    (path / "info.json").write_text(text, encoding="utf-8")
    return path


GOOD = {"info": "acc-ledger resource files", "version": "1.2"}


class TestCheckResourceDir:
    def test_valid(self, tmp_path: Path) -> None:
        check_resource_dir(_make_resource_dir(tmp_path / "rsc", GOOD), "acc-ledger", "1.2")

    def test_missing_dir(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceCheckError, match="No such directory"):
            check_resource_dir(tmp_path / "nope", "acc-ledger", "1.2")

    def test_not_a_directory(self, tmp_path: Path) -> None:
        f = tmp_path / "file"
        f.write_text("x")
        with pytest.raises(ResourceCheckError, match="Not a directory"):
            check_resource_dir(f, "acc-ledger", "1.2")

    def test_missing_info_file(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceCheckError, match="Cannot read"):
            check_resource_dir(tmp_path, "acc-ledger", "1.2")

    def test_malformed_json(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceCheckError, match="Malformed"):
            check_resource_dir(_make_resource_dir(tmp_path, "{not json"), "acc-ledger", "1.2")

    def test_non_utf8_info_file(self, tmp_path: Path) -> None:
        (tmp_path / "info.json").write_bytes(b"\xff\xfe{}")
        with pytest.raises(ResourceCheckError, match="Malformed"):
            check_resource_dir(tmp_path, "acc-ledger", "1.2")

    def test_wrong_version(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceCheckError, match="Wrong version: 1.2"):
            check_resource_dir(_make_resource_dir(tmp_path, GOOD), "acc-ledger", "2.0")

    def test_wrong_name(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceCheckError, match="Not a resource directory"):
            check_resource_dir(_make_resource_dir(tmp_path, GOOD), "other", "1.2")


class TestFindResourceDir:
    def test_first_match_wins(self, tmp_path: Path) -> None:
        first = _make_resource_dir(tmp_path / "a", GOOD)
        second = _make_resource_dir(tmp_path / "b", GOOD)

        found = find_resource_dir(
            "acc-ledger", "1.2", extra=[first, second], executable=str(tmp_path / "bin" / "app")
        )

        assert found == first

    def test_skips_rejected_candidates(self, tmp_path: Path) -> None:
        stale = _make_resource_dir(tmp_path / "a", {**GOOD, "version": "0.9"})
        good = _make_resource_dir(tmp_path / "b", GOOD)

        found = find_resource_dir(
            "acc-ledger", "1.2", extra=[stale, good], executable=str(tmp_path / "bin" / "app")
        )

        assert found == good

    def test_undecodable_candidate_is_skipped(self, tmp_path: Path) -> None:
        broken = tmp_path / "a"
        broken.mkdir()
        (broken / "info.json").write_bytes(b"\xff\xfe{}")
        good = _make_resource_dir(tmp_path / "b", GOOD)

        found = find_resource_dir(
            "acc-ledger", "1.2", extra=[broken, good], executable=str(tmp_path / "bin" / "app")
        )

        assert found == good

    def test_default_share_location(self, tmp_path: Path) -> None:
        share = _make_resource_dir(tmp_path / "share" / "acc-ledger", GOOD)
        (tmp_path / "bin").mkdir()

        found = find_resource_dir("acc-ledger", "1.2", executable=str(tmp_path / "bin" / "app"))

        assert found == share.resolve()

    def test_not_found_logs_every_reason(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        exe = tmp_path / "bin" / "app"
        exe.parent.mkdir()

        with caplog.at_level(logging.WARNING, logger="src.acc_common.resources"):
            with pytest.raises(ResourceDirNotFoundError):
                find_resource_dir("acc-ledger", "1.2", executable=str(exe))

        assert len(caplog.records) == len(default_candidates("acc-ledger", str(exe)))
        assert all("No resource directory" in r.getMessage() for r in caplog.records)
