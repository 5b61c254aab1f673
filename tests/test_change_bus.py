import threading

from whisperd.change_bus import ChangeBus
from whisperd.config_schema import default_settings


def _with_press(chord):
    settings = default_settings()
    settings.shortcuts.press = chord
    return settings


def test_first_wait_returns_current_value_immediately():
    bus = ChangeBus(_with_press("F1"))
    subscription = bus.subscribe()

    value = subscription.wait(timeout=0)

    assert value is not None
    assert value.shortcuts.press == "F1"


def test_wait_times_out_without_new_publication():
    bus = ChangeBus(default_settings())
    subscription = bus.subscribe()
    subscription.wait(timeout=0)

    assert subscription.wait(timeout=0.05) is None
    assert not subscription.has_pending()


def test_slow_subscriber_only_sees_latest_value():
    bus = ChangeBus(_with_press("F1"))
    subscription = bus.subscribe()
    subscription.wait(timeout=0)

    for chord in ("F2", "F3", "F4"):
        bus.publish(_with_press(chord))

    assert subscription.wait(timeout=0).shortcuts.press == "F4"
    assert subscription.wait(timeout=0.01) is None


def test_latest_does_not_consume():
    bus = ChangeBus(_with_press("F1"))
    subscription = bus.subscribe()
    subscription.wait(timeout=0)
    bus.publish(_with_press("F2"))

    assert subscription.latest().shortcuts.press == "F2"
    assert subscription.has_pending()
    assert subscription.wait(timeout=0).shortcuts.press == "F2"


def test_published_values_are_isolated_copies():
    original = _with_press("F1")
    bus = ChangeBus(original)

    original.shortcuts.press = "mutated"
    received = bus.current()
    received.shortcuts.press = "also mutated"

    assert bus.current().shortcuts.press == "F1"


def test_waiter_is_woken_by_publish():
    bus = ChangeBus(_with_press("F1"))
    subscription = bus.subscribe()
    subscription.wait(timeout=0)
    received = []

    def consume():
        received.append(subscription.wait(timeout=2))

    worker = threading.Thread(target=consume)
    worker.start()
    bus.publish(_with_press("F7"))
    worker.join(timeout=2)

    assert not worker.is_alive()
    assert received[0].shortcuts.press == "F7"


def test_iteration_yields_successive_values():
    bus = ChangeBus(_with_press("F1"))
    iterator = iter(bus.subscribe())

    assert next(iterator).shortcuts.press == "F1"
    bus.publish(_with_press("F2"))
    assert next(iterator).shortcuts.press == "F2"


def test_version_increments_per_publish():
    bus = ChangeBus(default_settings())

    bus.publish(default_settings())
    bus.publish(default_settings())

    assert bus.version == 2
