import types

import requests

from utils import list_coins

COINS = [
    {"id": "solana", "symbol": "sol", "name": "Solana", "platforms": {"solana": ""}},
    {"id": "bonk", "symbol": "bonk", "name": "Bonk", "platforms": {"solana": "DezX..."}},
    {"id": "notcoin", "symbol": "not", "name": "Notcoin", "platforms": {"the-open-network": "EQAv..."}},
]


class DummySession:
    def __init__(self, status=200, payload=COINS, error=None):
        self.status = status
        self.payload = payload
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return types.SimpleNamespace(
            status_code=self.status,
            json=lambda: self.payload,
            text=str(self.payload),
        )


def test_collect_filters_network():
    session = DummySession()
    coins = list_coins.collect("solana", "https://example.test/api/v3", session)
    assert [c.id for c in coins] == ["solana", "bonk"]
    assert session.calls[0][0] == "https://example.test/api/v3/coins/list"
    assert session.calls[0][1] == {"include_platform": "true"}


def test_cli_prints_tokens(capsys):
    rc = list_coins.main(["--network", "ton"], session=DummySession())
    assert rc == 0
    out = capsys.readouterr()
    assert out.out.strip() == "notcoin\tnot"
    assert "1 coins on ton" in out.err


def test_cli_limit(capsys):
    assert list_coins.main(["--network", "solana", "--limit", "1"], session=DummySession()) == 0
    assert capsys.readouterr().out.strip() == "solana\tsol"


def test_cli_unsupported_network(capsys):
    assert list_coins.main(["--network", "ethereum"], session=DummySession()) == 1
    assert "unsupported network" in capsys.readouterr().err


def test_cli_api_error(capsys):
    assert list_coins.main(["--network", "ton"], session=DummySession(status=503, payload="busy")) == 1
    assert "status=503" in capsys.readouterr().err


def test_cli_malformed_coin_list(capsys):
    assert list_coins.main(["--network", "ton"], session=DummySession(payload=[{"id": "x"}])) == 1
    assert "malformed coin entry" in capsys.readouterr().err


def test_cli_unreachable_api(capsys, monkeypatch):
    monkeypatch.setattr("utils.retry.time.sleep", lambda s: None)
    session = DummySession(error=requests.ConnectionError("refused"))
    assert list_coins.main(["--network", "ton"], session=session) == 1
    assert len(session.calls) == 3
    assert "status=0" in capsys.readouterr().err


def test_cli_bad_config(tmp_path, capsys):
    path = tmp_path / "settings.toml"
    path.write_text("[scanner\n")
    assert list_coins.main(["--config", str(path)], session=DummySession()) == 1
    assert "Failed to parse" in capsys.readouterr().err
