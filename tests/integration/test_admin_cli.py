"""
Integration tests for the jsonvault-admin CLI.

Tests cover:
- Each subcommand against a real data directory
- Exit codes for success, unrecoverable data and bad input
"""

import hashlib
import json
import tempfile
from pathlib import Path

import pytest

from tests.helpers import encode
from vault.jsonvault.tools.admin import main

COLLECTION_FILES = {
    "customers": "customers.json",
    "quotes": "quotes.json",
    "dealers": "dealers.json",
    "pricing": "pricing-tiers.json",
    "users": "users.json",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DATA_DIR", "BACKUP_DIR", "STORAGE_BACKEND", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def data_dir():
    """Create a data directory holding every collection."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        for name, file_name in COLLECTION_FILES.items():
            (root / file_name).write_bytes(encode([{"collection": name}]))
        yield root


def run_cli(capsys, data_dir, *argv):
    """Run the CLI and return (exit code, parsed stdout)."""
    code = main(["--data-dir", str(data_dir), *argv])
    out = capsys.readouterr().out
    return code, json.loads(out) if out.strip() else None


class TestAdminCli:
    """Tests for admin subcommands."""

    def test_backup_and_list(self, capsys, data_dir):
        code, result = run_cli(capsys, data_dir, "backup", "--class", "weekly")
        assert code == 0
        assert result["manifest"]["type"] == "weekly"
        assert sorted(result["manifest"]["files"]) == sorted(COLLECTION_FILES)

        code, backups = run_cli(capsys, data_dir, "list")
        assert code == 0
        assert len(backups) == 1
        assert backups[0]["name"].startswith("weekly_")

    def test_backup_defaults_to_daily(self, capsys, data_dir):
        code, result = run_cli(capsys, data_dir, "backup")

        assert code == 0
        assert result["manifest"]["type"] == "daily"

    def test_custom_backup_dir(self, capsys, data_dir):
        with tempfile.TemporaryDirectory() as backup_dir:
            code, _ = run_cli(capsys, data_dir, "--backup-dir", backup_dir, "backup")

            assert code == 0
            assert len(list(Path(backup_dir).iterdir())) == 1
            assert not (data_dir / "backups").exists()

    def test_restore_single(self, capsys, data_dir):
        run_cli(capsys, data_dir, "backup")
        (data_dir / "quotes.json").write_text("{oops")

        code, result = run_cli(capsys, data_dir, "restore", "quotes")

        assert code == 0
        assert result["restored"] is True
        assert json.loads((data_dir / "quotes.json").read_text()) == [{"collection": "quotes"}]

    def test_restore_without_backup(self, capsys, data_dir):
        code, result = run_cli(capsys, data_dir, "restore", "quotes")

        assert code == 1
        assert result["restored"] is False

    def test_restore_unknown_collection(self, capsys, data_dir):
        code, result = run_cli(capsys, data_dir, "restore", "orders")

        assert code == 2
        assert "orders" in result["error"]

    def test_restore_all(self, capsys, data_dir):
        run_cli(capsys, data_dir, "backup")

        code, result = run_cli(capsys, data_dir, "restore")

        assert code == 0
        assert result["results"] == {name: True for name in COLLECTION_FILES}

    def test_verify_healthy(self, capsys, data_dir):
        code, issues = run_cli(capsys, data_dir, "verify")

        assert code == 0
        assert issues == []

    def test_verify_unrecoverable(self, capsys, data_dir):
        (data_dir / "users.json").unlink()

        code, issues = run_cli(capsys, data_dir, "verify")

        assert code == 1
        assert issues[0]["file"] == "users"
        assert issues[0]["restored"] is False

    def test_export_import_round_trip(self, capsys, data_dir):
        export_file = data_dir / "export.json"

        code, result = run_cli(capsys, data_dir, "export", "--output", str(export_file))
        assert code == 0
        assert result["stats"] == {name: 1 for name in COLLECTION_FILES}

        (data_dir / "customers.json").write_bytes(encode([]))

        code, result = run_cli(capsys, data_dir, "import", str(export_file))
        assert code == 0
        assert all(r["checksum_valid"] for r in result["results"].values())
        assert json.loads((data_dir / "customers.json").read_text()) == [
            {"collection": "customers"}
        ]

    def test_export_to_stdout(self, capsys, data_dir):
        code, document = run_cli(capsys, data_dir, "export")

        assert code == 0
        assert document["version"] == "1.0"
        assert set(document["checksums"]) == set(COLLECTION_FILES)

    def test_import_missing_file(self, capsys, data_dir):
        code = main(["--data-dir", str(data_dir), "import", str(data_dir / "nope.json")])

        assert code == 2
        assert "Error" in capsys.readouterr().err

    def test_import_rejected_collection_fails(self, capsys, data_dir):
        """An import that writes nothing exits non-zero even with a matching old checksum."""
        old_checksum = hashlib.sha256((data_dir / "users.json").read_bytes()).hexdigest()
        payload = data_dir / "partial.json"
        payload.write_text(
            json.dumps({"data": {"users": {"id": "u2"}}, "checksums": {"users": old_checksum}})
        )

        code, result = run_cli(capsys, data_dir, "import", str(payload))

        assert code == 1
        assert result["results"]["users"]["error"] == "expected an array of records"
        assert result["results"]["users"]["checksum_valid"] is None

    def test_import_invalid_payload(self, capsys, data_dir):
        bad = data_dir / "bad.json"
        bad.write_text(json.dumps({"records": []}))

        code = main(["--data-dir", str(data_dir), "import", str(bad)])

        assert code == 2
        assert not (data_dir / "backups").exists()

    def test_status(self, capsys, data_dir):
        run_cli(capsys, data_dir, "backup", "--class", "hourly")

        code, status = run_cli(capsys, data_dir, "status")

        assert code == 0
        assert status["backups"]["total"] == 1
        assert status["backups"]["hourly"] == 1
        assert status["files"]["pricing"]["records"] == 1
        assert status["integrity_check"] == []
