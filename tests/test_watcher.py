import time

from whisperd.config_manager import ConfigManager
from whisperd.watcher import WATCH_INTERVAL_SECONDS, ConfigWatcher, file_state


def test_file_state_reports_size_and_absence(tmp_path):
    path = tmp_path / "config.jsonc"
    assert file_state(path) is None

    path.write_text("{}", encoding="utf-8")
    state = file_state(path)

    assert state is not None
    assert state[1] == 2


def test_poll_once_fires_only_on_change(tmp_path):
    path = tmp_path / "config.jsonc"
    path.write_text("{}", encoding="utf-8")
    calls = []
    watcher = ConfigWatcher(path, lambda: calls.append(1))

    assert watcher.poll_once() is False
    path.write_text('{"shift_paste": false}', encoding="utf-8")
    assert watcher.poll_once() is True
    assert watcher.poll_once() is False
    assert calls == [1]


def test_poll_once_swallows_reload_failures(tmp_path):
    path = tmp_path / "config.jsonc"
    attempts = []

    def failing_reload():
        attempts.append(1)
        raise OSError("gone")

    watcher = ConfigWatcher(path, failing_reload)
    path.write_text("{}", encoding="utf-8")

    assert watcher.poll_once() is True
    assert watcher.poll_once() is False
    assert attempts == [1]


def test_external_edit_is_observed_within_two_intervals():
    manager = ConfigManager.load()
    subscription = manager.subscribe()
    subscription.wait(timeout=0)
    manager.start_watching()
    try:
        manager.config_path.write_text(
            '{"shortcuts": {"press": "CTRL+ALT+X"}, "audio_feedback": true}',
            encoding="utf-8",
        )
        started = time.monotonic()
        received = subscription.wait(timeout=2 * WATCH_INTERVAL_SECONDS)
        elapsed = time.monotonic() - started
    finally:
        manager.stop_watching(timeout=2)

    assert received is not None
    assert elapsed <= 1.0
    assert received.shortcuts.press == "CTRL+ALT+X"
    assert received.audio_feedback is True
    assert manager.get().shortcuts.press == "CTRL+ALT+X"


def test_no_publication_without_edits():
    manager = ConfigManager.load()
    subscription = manager.subscribe()
    subscription.wait(timeout=0)
    manager.start_watching(poll_interval=0.05)
    try:
        assert subscription.wait(timeout=0.4) is None
    finally:
        manager.stop_watching(timeout=2)


def test_malformed_edit_keeps_previous_value():
    manager = ConfigManager.load()
    subscription = manager.subscribe()
    subscription.wait(timeout=0)
    manager.start_watching(poll_interval=0.05)
    try:
        manager.config_path.write_text("{ this is not json", encoding="utf-8")
        assert subscription.wait(timeout=0.4) is None
        assert manager.get().shortcuts.press == "SUPER+ALT+R"

        manager.config_path.write_text('{"shift_paste": false}', encoding="utf-8")
        received = subscription.wait(timeout=1)
    finally:
        manager.stop_watching(timeout=2)

    assert received is not None
    assert received.shift_paste is False


def test_invalid_utf8_edit_does_not_stop_watching():
    manager = ConfigManager.load()
    subscription = manager.subscribe()
    subscription.wait(timeout=0)
    manager.start_watching(poll_interval=0.05)
    watcher = manager._watcher
    try:
        manager.config_path.write_bytes(b'{"shift_paste": "\xff\xfe"}')
        assert subscription.wait(timeout=0.4) is None
        assert watcher.is_alive()
        assert manager.get().shift_paste is True

        manager.config_path.write_text('{"audio_feedback": true}', encoding="utf-8")
        received = subscription.wait(timeout=1)
    finally:
        manager.stop_watching(timeout=2)

    assert received is not None
    assert received.audio_feedback is True


def test_save_is_not_republished_by_watcher():
    manager = ConfigManager.load()
    subscription = manager.subscribe()
    subscription.wait(timeout=0)
    manager.start_watching(poll_interval=0.05)
    try:
        updated = manager.get()
        updated.global_paste_shortcut = True
        manager.save(updated)

        assert subscription.wait(timeout=1).global_paste_shortcut is True
        time.sleep(0.3)
        assert subscription.wait(timeout=0.2) is None
    finally:
        manager.stop_watching(timeout=2)


def test_deleted_file_keeps_previous_value():
    manager = ConfigManager.load()
    manager.start_watching(poll_interval=0.05)
    try:
        manager.config_path.unlink()
        time.sleep(0.3)
        assert manager.get().shortcuts.press == "SUPER+ALT+R"
    finally:
        manager.stop_watching(timeout=2)


def test_stop_watching_joins_thread():
    manager = ConfigManager.load()
    manager.start_watching(poll_interval=0.05)
    watcher = manager._watcher

    manager.stop_watching(timeout=2)

    assert watcher.stopped
    assert not watcher.is_alive()
    assert manager.start_watching(poll_interval=0.05) is True
    manager.stop_watching(timeout=2)
