# tests/test_cli.py
"""Tests for the command-line interface."""

import json
import sys

import pytest

from apfed import cli
from apfed.client import FederationClient
from apfed.keys import load_private_key


class TestCli:
    """Test commands that need no network."""

    def test_keygen(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["apfed", "keygen", "alice", "--domain", "example.com", "--out-dir", str(tmp_path)])
        cli.main()

        actor = json.loads(capsys.readouterr().out)
        assert actor["id"] == "https://example.com/users/alice"
        private_path = tmp_path / "alice.private.pem"
        assert private_path.stat().st_mode & 0o777 == 0o600
        load_private_key(private_path.read_text())
        assert actor["publicKey"]["publicKeyPem"] == (tmp_path / "alice.public.pem").read_text()

    def test_no_command(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["apfed"])
        with pytest.raises(SystemExit) as exc:
            cli.main()
        assert exc.value.code == 1

    def test_malformed_handle_reports_error(self, monkeypatch, capsys):
        monkeypatch.delenv("APFED_CONFIG", raising=False)
        monkeypatch.setattr(sys, "argv", ["apfed", "webfinger", "not-a-handle"])
        with pytest.raises(SystemExit) as exc:
            cli.main()
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_resolve_actor_by_url(self, transport):
        transport.routes["https://example.org/users/alice"] = {"id": "https://example.org/users/alice"}
        client = FederationClient(transport=transport)

        actor = cli.resolve_actor(client, "https://example.org/users/alice", None)
        assert actor["id"] == "https://example.org/users/alice"
        assert len(transport.calls) == 1

    def test_resolve_actor_by_handle(self, transport):
        transport.routes["https://example.org/.well-known/webfinger?resource=acct:alice@example.org"] = {
            "links": [{"rel": "self", "type": "application/activity+json", "href": "https://example.org/users/alice"}],
        }
        transport.routes["https://example.org/users/alice"] = {"id": "https://example.org/users/alice"}
        client = FederationClient(transport=transport)

        assert cli.resolve_actor(client, "@alice@example.org", None)["id"] == "https://example.org/users/alice"
        assert len(transport.calls) == 2
