import runpy
import sys

import pytest
import uvicorn

from alert_relay.config import RelaySettings
from alert_relay.main import run


def test_run_without_flags_does_nothing(monkeypatch):
    # run() uses argparse; keep pytest's own argv out of it.
    monkeypatch.setattr("sys.argv", ["alert-relay"])
    assert run() == 0


def test_run_print_config_does_not_crash(capfd):
    cfg = RelaySettings()
    code = run(argv=["--print-config"], cfg=cfg)
    assert code == 0

    out, _ = capfd.readouterr()
    assert "storage_bucket" in out


def test_run_serve_calls_uvicorn(monkeypatch, tmp_path):
    called = {}

    def fake_run(app, host, port, log_level):
        called["app"] = app
        called["host"] = host
        called["port"] = port
        called["log_level"] = log_level
        return None

    monkeypatch.setattr(uvicorn, "run", fake_run)

    cfg = RelaySettings(host="127.0.0.1", port=9999, log_level="INFO", mirror_dir=str(tmp_path / "m"))
    code = run(argv=["--serve"], cfg=cfg)

    assert code == 0
    assert called["host"] == "127.0.0.1"
    assert called["port"] == 9999
    assert called["log_level"] == "info"
    assert called["app"].state.engine.interval == cfg.sync_interval_sec


def test_run_desktop_delegates_to_tray_shell(monkeypatch):
    import types

    seen = {}
    fake = types.ModuleType("alert_relay.desktop")

    def fake_run_desktop(cfg):
        seen["cfg"] = cfg
        return 0

    fake.run_desktop = fake_run_desktop
    monkeypatch.setitem(sys.modules, "alert_relay.desktop", fake)

    cfg = RelaySettings()
    assert run(argv=["--desktop"], cfg=cfg) == 0
    assert seen["cfg"] is cfg


def test_run_returns_1_on_unexpected_exception(monkeypatch):
    import alert_relay.main as m

    monkeypatch.setattr(m, "build_parser", lambda: (_ for _ in ()).throw(RuntimeError("boom")))
    code = m.run(argv=[])
    assert code == 1


def test_run_reraises_in_debug(monkeypatch):
    import alert_relay.main as m

    monkeypatch.setattr(m, "configure_logging", lambda level: (_ for _ in ()).throw(RuntimeError("boom")))
    with pytest.raises(RuntimeError):
        m.run(argv=[], cfg=RelaySettings(debug=True))


def test_module_entrypoint_exits_cleanly(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["alert-relay"])

    # Ensure runpy executes a fresh copy (avoid RuntimeWarning)
    sys.modules.pop("alert_relay.main", None)

    with pytest.raises(SystemExit) as exc:
        runpy.run_module("alert_relay.main", run_name="__main__")

    assert exc.value.code == 0
