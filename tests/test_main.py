import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import main


class TestMain:
    def test_prints_accounts_csv(self, tmp_path, capsys):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 40.0",
        ]))

        exit_code = main.main([str(csv_file)])

        assert exit_code == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ["client,available,held,total,locked", "1,60.0000,0.0000,60.0000,false"]

    def test_hard_error_exits_without_output(self, tmp_path, capsys, caplog):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, -1",
        ]))

        with caplog.at_level(logging.ERROR):
            exit_code = main.main([str(csv_file)])

        assert exit_code == 1
        assert capsys.readouterr().out == ""
        assert "[row 2]" in caplog.text

    def test_non_utf8_input_exits_without_output(self, tmp_path, capsys):
        csv_file = tmp_path / "input.csv"
        csv_file.write_bytes(b"type,client,tx,amount\ndeposit,1,1,1\xff\n")

        exit_code = main.main([str(csv_file)])

        assert exit_code == 1
        assert capsys.readouterr().out == ""

    def test_missing_file(self, tmp_path, capsys):
        exit_code = main.main([str(tmp_path / "nope.csv")])

        assert exit_code == 1
        assert capsys.readouterr().out == ""

    def test_usage(self, capsys):
        exit_code = main.main([])

        assert exit_code == 1
        assert "Usage" in capsys.readouterr().err

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "debug")
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        main.configure_logging()

        assert calls[0]["level"] == logging.DEBUG

    def test_unknown_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "chatty")
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        main.configure_logging()

        assert calls[0]["level"] == logging.WARNING
