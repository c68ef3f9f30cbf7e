import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import config
from main import main


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    for name in ("LEDGER_LOG_LEVEL", "LEDGER_STRICT", "LEDGER_ABORT_ON_MALFORMED"):
        monkeypatch.delenv(name, raising=False)
    config.config.cache_clear()
    yield
    config.config.cache_clear()


def run(tmp_path, capsys, lines):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text("\n".join(lines))
    status = main(["ledger-replay", str(csv_file)])
    captured = capsys.readouterr()
    return status, captured.out.splitlines()


class TestMain:
    def test_basic_transactions(self, tmp_path, capsys):
        status, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ])

        assert status == 0
        assert output == [
            "client,available,held,total,locked",
            "1,1.5,0.0000,1.5,false",
            "2,2,0.0000,2,false",
        ]

    def test_chargeback_locks_account(self, tmp_path, capsys):
        status, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, 5.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 5.0",
        ])

        assert status == 0
        assert output[1:] == ["1,0.0000,0.0000,0.0000,true"]

    def test_dispute_held(self, tmp_path, capsys):
        _, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 0.5",
            "dispute, 1, 1,",
        ])

        assert output[1:] == ["1,0.5,100,100.5,false"]

    def test_unknown_dispute_reference_lists_account(self, tmp_path, capsys):
        _, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, 3",
            "dispute, 2, 99,",
        ])

        assert output[1:] == [
            "1,3,0.0000,3,false",
            "2,0.0000,0.0000,0.0000,false",
        ]

    def test_malformed_row_skipped_by_default(self, tmp_path, capsys):
        status, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, -100.0",
            "deposit, 1, 2, 50.0",
        ])

        assert status == 0
        assert output[1:] == ["1,50,0.0000,50,false"]

    def test_malformed_row_aborts_when_configured(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("LEDGER_ABORT_ON_MALFORMED", "true")

        status, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, -100.0",
            "deposit, 1, 2, 50.0",
        ])

        assert status == 1
        assert output == []

    def test_bad_header(self, tmp_path, capsys, caplog):
        status, output = run(tmp_path, capsys, ["type, tx, client, amount", "deposit, 1, 1, 1.0"])

        assert status == 1
        assert output == []
        assert "expected header" in caplog.text

    def test_blank_lines_before_header(self, tmp_path, capsys):
        status, output = run(tmp_path, capsys, ["", "type, client, tx, amount", "deposit, 1, 1, 1.0", ""])

        assert status == 0
        assert output[1:] == ["1,1,0.0000,1,false"]

    def test_oversized_amount_skipped(self, tmp_path, capsys):
        status, output = run(tmp_path, capsys, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1234567890123456789012345.12345",
            "deposit, 1, 2, 100000000000000000000000000",
            "deposit, 1, 3, 2.5",
        ])

        assert status == 0
        assert output[1:] == ["1,2.5,0.0000,2.5,false"]

    def test_missing_file(self, tmp_path, capsys):
        status = main(["ledger-replay", str(tmp_path / "missing.csv")])
        assert status == 1
        assert capsys.readouterr().out == ""

    def test_usage(self, capsys):
        assert main(["ledger-replay"]) == 1
        assert "Usage" in capsys.readouterr().err


class TestConfig:
    def test_defaults(self):
        settings = config.config()
        assert settings.log_level == "WARNING"
        assert settings.strict is False
        assert settings.abort_on_malformed is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")
        monkeypatch.setenv("LEDGER_STRICT", "1")

        settings = config.config()
        assert settings.log_level == "DEBUG"
        assert settings.strict is True

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "verbose")

        with pytest.raises(ValueError, match="unknown log level"):
            config.config()

    def test_unknown_log_level_is_usage_error(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "verbose")

        status, output = run(tmp_path, capsys, ["type, client, tx, amount", "deposit, 1, 1, 1.0"])

        assert status == 1
        assert output == []
