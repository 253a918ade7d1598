from __future__ import annotations

import threading

from forcelink.runtime.state import (
    BLUETOOTH_DISABLED,
    CONNECTED,
    DISCONNECTED,
    ConnectionState,
    ConnectionStatus,
    ObservableValue,
)


def test_error_state_carries_message():
    st = ConnectionState.error("Device 'X' not found")
    assert st.status is ConnectionStatus.ERROR
    assert st.message == "Device 'X' not found"
    assert str(st) == "error: Device 'X' not found"


def test_state_flags():
    assert CONNECTED.is_connected is True
    assert DISCONNECTED.is_connected is False
    assert BLUETOOTH_DISABLED.is_gating is True
    assert CONNECTED.is_gating is False


def test_states_compare_by_value():
    assert ConnectionState(ConnectionStatus.CONNECTED) == CONNECTED
    assert ConnectionState.error("a") != ConnectionState.error("b")


def test_observable_notifies_subscribers():
    v = ObservableValue(0)
    seen = []
    v.subscribe(seen.append)

    v.set(1)
    v.set(2)

    assert v.value == 2
    assert seen == [1, 2]


def test_observable_unsubscribe():
    v = ObservableValue("a")
    seen = []
    unsubscribe = v.subscribe(seen.append)
    v.set("b")
    unsubscribe()
    unsubscribe()
    v.set("c")
    assert seen == ["b"]


def test_observable_set_if():
    v = ObservableValue(1)
    seen = []
    v.subscribe(seen.append)

    assert v.set_if(lambda cur: cur == 2, 3) is False
    assert v.set_if(lambda cur: cur == 1, 3) is True
    assert v.value == 3
    assert seen == [3]


def test_observable_subscriber_error_is_isolated():
    v = ObservableValue(0)
    seen = []

    def boom(_):
        raise RuntimeError("bad subscriber")

    v.subscribe(boom)
    v.subscribe(seen.append)
    v.set(5)
    assert seen == [5]


def test_observable_notification_order_matches_set_order():
    v = ObservableValue(0)
    seen = []
    v.subscribe(seen.append)

    def writer(base):
        for i in range(200):
            v.set(base + i)

    threads = [threading.Thread(target=writer, args=(k * 1000,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seen) == 800
    assert seen[-1] == v.value
    for k in range(4):
        mine = [x for x in seen if k * 1000 <= x < k * 1000 + 200]
        assert mine == sorted(mine)
