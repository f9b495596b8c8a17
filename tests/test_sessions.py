"""Session registry with an injected clock."""

from oddsbridge.api.sessions import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_create_and_lookup():
    reg = SessionRegistry(idle_timeout_sec=60, clock=FakeClock())
    s = reg.create("kalshi")
    assert s.session_id in reg
    assert reg.lookup(s.session_id) is s
    assert reg.lookup(s.session_id, "kalshi") is s
    assert reg.lookup(s.session_id, "polymarket") is None
    assert reg.lookup(None) is None
    assert reg.lookup("unknown") is None
    assert len(reg) == 1


def test_session_ids_are_unique():
    reg = SessionRegistry()
    ids = {reg.create("compare").session_id for _ in range(50)}
    assert len(ids) == 50


def test_idle_expiry_and_touch():
    clock = FakeClock()
    reg = SessionRegistry(idle_timeout_sec=60, clock=clock)
    a = reg.create("kalshi")
    b = reg.create("kalshi")
    clock.now += 50
    reg.touch(b.session_id)
    clock.now += 20
    assert reg.lookup(a.session_id) is None
    assert a.session_id not in reg
    assert reg.lookup(b.session_id) is b


def test_evict_idle():
    clock = FakeClock()
    reg = SessionRegistry(idle_timeout_sec=10, clock=clock)
    reg.create("kalshi")
    reg.create("odds_api")
    clock.now += 11
    keep = reg.create("compare")
    stale = reg.evict_idle()
    assert sorted(s.server for s in stale) == ["kalshi", "odds_api"]
    assert len(reg) == 1
    assert keep.session_id in reg


def test_evict():
    reg = SessionRegistry()
    s = reg.create("kalshi")
    assert reg.evict(s.session_id)
    assert not reg.evict(s.session_id)


def test_create_with_transport_assigned_id():
    reg = SessionRegistry()
    s = reg.create("binance", session_id="abc123")
    assert s.session_id == "abc123"
    assert reg.lookup("abc123", "binance") is s
