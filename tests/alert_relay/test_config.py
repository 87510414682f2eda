from alert_relay.config import RelaySettings


def test_defaults(monkeypatch):
    for var in ("PORT", "HOST", "SYNC_INTERVAL_SEC", "MIRROR_DIR"):
        monkeypatch.delenv(var, raising=False)
    cfg = RelaySettings(_env_file=None)

    assert cfg.port == 3004
    assert cfg.sync_interval_sec == 5.0
    assert cfg.location_poll_interval_sec == 5.0
    assert cfg.replay_candidates == 10
    assert cfg.recency_window_minutes == 2
    assert cfg.image_prefix == "images/"
    assert cfg.notification_title == "Emergency Detected ..."


def test_port_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "4100")
    monkeypatch.setenv("sync_interval_sec", "1.5")
    cfg = RelaySettings(_env_file=None)

    # pydantic should coerce env strings
    assert cfg.port == 4100
    assert cfg.sync_interval_sec == 1.5


def test_location_url():
    cfg = RelaySettings(database_url="https://example.firebaseio.com/", location_path="/location")
    assert cfg.location_url == "https://example.firebaseio.com/location.json"
