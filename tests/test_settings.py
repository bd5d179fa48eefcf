import base64
import os
import socket

import pytest

import main
from config.settings    import Settings
from core.crypto_engine import KEY_LEN
from tunnel             import RelayServer


def test_parse_whitelist():
    assert Settings.parse_whitelist(" a.example, B.example:8080 ,,") == \
        frozenset({"a.example", "B.example:8080"})
    assert Settings.parse_whitelist("") == frozenset()


def test_parse_master_key():
    key = os.urandom(KEY_LEN)
    assert Settings.parse_master_key(base64.b64encode(key).decode()) == key


@pytest.mark.parametrize("raw", ["", "not base64!", base64.b64encode(b"short").decode()])
def test_parse_master_key_rejects(raw):
    with pytest.raises(ValueError):
        Settings.parse_master_key(raw)


def test_parse_positive_int():
    assert Settings.parse_positive_int("3600", "age") == 3600
    for raw in ("0", "-5", "soon", None):
        with pytest.raises(ValueError):
            Settings.parse_positive_int(raw, "age")


def test_build_relay_from_settings(monkeypatch):
    monkeypatch.setattr(Settings, "WHITELISTED_HOSTS", "a.example,b.example")
    monkeypatch.setattr(Settings, "MASTER_KEY",
                        base64.b64encode(os.urandom(KEY_LEN)).decode())
    monkeypatch.setattr(Settings, "MAX_SESSION_AGE", "120")
    monkeypatch.setattr(Settings, "RELAY_PORT", "9999")

    relay = main.build_relay()

    assert isinstance(relay, RelayServer)
    assert relay.transmit.whitelisted_hosts == {"a.example", "b.example"}
    assert relay.store.max_age == 120
    assert relay.port == 9999
    relay.stop()


def test_build_relay_requires_whitelist(monkeypatch):
    monkeypatch.setattr(Settings, "WHITELISTED_HOSTS", " , ")
    with pytest.raises(ValueError):
        main.build_relay()


def test_main_exits_when_port_is_taken(monkeypatch):
    monkeypatch.setattr(main, "setup_logging", lambda *args: None)
    monkeypatch.setattr(Settings, "WHITELISTED_HOSTS", "a.example")
    monkeypatch.setattr(Settings, "MASTER_KEY",
                        base64.b64encode(os.urandom(KEY_LEN)).decode())
    monkeypatch.setattr(Settings, "RELAY_HOST", "127.0.0.1")

    with socket.socket() as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        monkeypatch.setattr(Settings, "RELAY_PORT", str(taken.getsockname()[1]))
        with pytest.raises(SystemExit) as exit_info:
            main.main()

    assert exit_info.value.code == 2
