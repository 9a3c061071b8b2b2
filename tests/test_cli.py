"""
Tests for the erp-session command-line tool (offline commands only).
"""
import json
import logging

import pytest

from erp_session import logging_setup
from erp_session.cli import build_parser, main


@pytest.fixture
def store_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("ERP_API_KEY", "ERP_APP_KEY", "ERP_API_SECRET"):
        monkeypatch.delenv(name, raising=False)
    yield tmp_path / "session.json"
    # Drop the console handler bound to the captured stderr
    while logging_setup._installed_handlers:
        logging.getLogger().removeHandler(logging_setup._installed_handlers.pop())


class TestCli:
    def test_set_url_writes_cleaned_url(self, store_file, capsys):
        code = main(["--store", str(store_file), "set-url", " https://erp.example.com// "])

        assert code == 0
        saved = json.loads(store_file.read_text(encoding="utf-8"))
        assert saved["baseUrl"] == "https://erp.example.com"
        assert "Base URL stored" in capsys.readouterr().out

    def test_status_masks_tokens(self, store_file, capsys):
        store_file.write_text(
            json.dumps(
                {
                    "baseUrl": "https://erp.example.com",
                    "access_token": "abcdefghijklmnop",
                    "refresh_token": "qrstuvwxyz012345",
                }
            ),
            encoding="utf-8",
        )

        assert main(["--store", str(store_file), "status"]) == 0

        out = capsys.readouterr().out
        assert "https://erp.example.com" in out
        assert "abcd...mnop" in out
        assert "abcdefghijklmnop" not in out

    def test_logout_clears_tokens_but_keeps_base_url(self, store_file):
        store_file.write_text(
            json.dumps(
                {
                    "baseUrl": "https://erp.example.com",
                    "access_token": "a",
                    "refresh_token": "r",
                }
            ),
            encoding="utf-8",
        )

        assert main(["--store", str(store_file), "logout"]) == 0

        saved = json.loads(store_file.read_text(encoding="utf-8"))
        assert saved == {"baseUrl": "https://erp.example.com"}

    def test_refresh_without_stored_session_fails(self, store_file, capsys):
        assert main(["--store", str(store_file), "refresh"]) == 1
        assert "Missing refresh token" in capsys.readouterr().out

    def test_login_requires_all_credentials(self, store_file, capsys):
        code = main(["--store", str(store_file), "login", "--api-key", "k"])

        assert code == 1
        assert "--app-key" in capsys.readouterr().out

    def test_unusable_url_is_rejected(self, store_file):
        assert main(["--store", str(store_file), "set-url", " / "]) == 1
        assert not store_file.exists()

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
