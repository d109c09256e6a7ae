import threading
from app.core.locks import KeyedLock


def test_same_key_is_serialised():
    locks = KeyedLock()
    entered = threading.Event()
    release = threading.Event()
    order = []

    def holder():
        with locks.hold(("RESEARCH", "req-1")):
            entered.set()
            release.wait(timeout=5)
            order.append("first")

    def waiter():
        entered.wait(timeout=5)
        with locks.hold(("RESEARCH", "req-1")):
            order.append("second")

    threads = [threading.Thread(target=holder), threading.Thread(target=waiter)]
    for t in threads:
        t.start()
    entered.wait(timeout=5)
    release.set()
    for t in threads:
        t.join(timeout=5)

    assert order == ["first", "second"]


def test_different_keys_do_not_block():
    locks = KeyedLock()
    done = threading.Event()

    def other():
        with locks.hold(("RESEARCH", "req-2")):
            done.set()

    with locks.hold(("RESEARCH", "req-1")):
        t = threading.Thread(target=other)
        t.start()
        assert done.wait(timeout=2)
        t.join(timeout=2)
        assert len(locks) == 1


def test_idle_keys_are_dropped_and_lock_is_reentrant():
    locks = KeyedLock()
    with locks.hold(("PROPOSAL", "prop-1")):
        with locks.hold(("PROPOSAL", "prop-1")):
            assert len(locks) == 1
    assert len(locks) == 0
