import time

from storefront.sessions import SessionStore


def age(session, seconds):
    session.last_seen = time.monotonic() - seconds


def test_idle_sessions_are_swept_on_creation():
    store = SessionStore(max_idle=60, purge_interval=0)
    idle, _ = store.get_or_create()
    active, _ = store.get_or_create()
    age(idle, 120)

    store.get_or_create()

    assert store.get(idle.sid) is None
    assert store.get(active.sid) is active
    assert len(store) == 2


def test_sweep_runs_at_most_once_per_interval():
    store = SessionStore(max_idle=60, purge_interval=3600)
    idle, _ = store.get_or_create()
    age(idle, 120)

    store.get_or_create()

    assert store.get(idle.sid) is idle
    assert store.purge(60) == 1


def test_store_without_max_idle_never_sweeps():
    store = SessionStore(purge_interval=0)
    old, _ = store.get_or_create()
    age(old, 10 ** 6)

    store.get_or_create()

    assert store.get(old.sid) is old


def test_known_sid_is_reused():
    store = SessionStore()
    session, created = store.get_or_create("abc")
    again, created_again = store.get_or_create("abc")

    assert created is True
    assert created_again is False
    assert again is session
