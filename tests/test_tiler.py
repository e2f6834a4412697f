"""
Unit tests for wiring, lifecycle and the preview entry point.
"""

import json
import logging

import pytest
from pubsub import pub

from zonetiler import topics
from zonetiler.memory import JsonFileStore
from zonetiler.protocol import Rect
from zonetiler.tiler import Tiler, main
from zonetiler.timers import TimerQueue

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.mark.unit
class TestTiler:
    """Test the tiler lifecycle."""

    def test_start_builds_zones(self, tiler):
        assert len(tiler.registry) == 4
        assert tiler.ctx.registry is tiler.registry

    def test_keeps_injected_collaborators(self, window_system, config, store):
        queue = TimerQueue(clock=lambda: 0.0)

        tiler = Tiler(window_system, config=config, store=store, timers=queue)

        assert tiler.timers is queue
        assert tiler.ctx.debouncer.timers is queue
        assert tiler.config is config
        assert tiler.memory.store is store

    def test_start_maps_existing_windows(self, window_system, config, store, timers):
        window_system.add_window(1, frame=Rect(960, 0, 960, 1080))
        tiler = Tiler(window_system, config=config, store=store, timers=timers)

        tiler.start()

        assert tiler.tracker.get(1).zone_id == "right_S"

    def test_memory_keyed_by_screen_name(self, tiler, store):
        tiler.memory.remember_frame("Term", "S", Rect(0, 0, 10, 10))

        assert "Main" in store.data

    def test_default_store_uses_cache_dir(self, window_system, config, tmp_path):
        config.window_memory.cache_dir = str(tmp_path)
        tiler = Tiler(window_system, config=config)

        assert isinstance(tiler.memory.store, JsonFileStore)
        assert tiler.memory.store.cache_dir == tmp_path

    def test_from_config_file(self, window_system, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"problem_apps": ["Slow"]}))

        tiler = Tiler.from_config_file(window_system, path)

        assert tiler.config.is_problem_app("Slow")

    def test_tick_runs_due_timers(self, window_system, config, store):
        now = [0.0]
        timers = TimerQueue(clock=lambda: now[0])
        tiler = Tiler(window_system, config=config, store=store, timers=timers)
        calls = []
        timers.call_later(1.0, calls.append, 1)

        assert tiler.tick() == 0
        now[0] = 2.0
        assert tiler.tick() == 1
        assert calls == [1]

    def test_shutdown(self, tiler, window_system, timers):
        window_system.add_window(1)
        tiler.registry.get("left_S").add_window(1)
        pub.sendMessage(topics.SCREENS_CHANGED)

        tiler.shutdown()

        assert len(tiler.registry) == 0
        assert len(tiler.tracker) == 0
        assert len(timers) == 0

    def test_listener_errors_are_logged(self, tiler, caplog):
        def broken(zone_id, window_id=None):
            raise RuntimeError("listener bug")

        pub.subscribe(broken, topics.CMD_CYCLE_OR_ASSIGN)

        with caplog.at_level(logging.ERROR, logger="zonetiler.tiler"):
            pub.sendMessage(topics.CMD_CYCLE_OR_ASSIGN, zone_id="left", window_id=None)

        assert "listener bug" in caplog.text

    def test_debug_event_logging(self, window_system, config, store, monkeypatch, caplog):
        monkeypatch.setenv("ZONETILER_DEBUG", "1")
        tiler = Tiler(window_system, config=config, store=store)

        with caplog.at_level(logging.DEBUG, logger="zonetiler.tiler"):
            tiler.start()

        assert "EVENT: zones.rebuilt" in caplog.text

    def test_preview_layout(self, tiler, tmp_path):
        path = tmp_path / "preview.png"

        assert tiler.preview_layout("S", path)
        assert path.read_bytes()[:8] == PNG_MAGIC

    def test_preview_unknown_screen(self, tiler, tmp_path):
        assert not tiler.preview_layout("nope", tmp_path / "x.png")


@pytest.mark.unit
class TestMain:
    """Test the layout preview command."""

    @pytest.fixture(autouse=True)
    def quiet(self, monkeypatch):
        monkeypatch.setattr("zonetiler.tiler.setup_logging", lambda debug=False: None)

    def test_writes_png(self, tmp_path):
        path = tmp_path / "out.png"

        assert main([str(path), "--size", "3840x2160"]) == 0
        assert path.read_bytes()[:8] == PNG_MAGIC

    def test_uses_config(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"custom_screens": {"Desk": {"grid": "2x2"}}}))
        path = tmp_path / "out.png"

        assert main([str(path), "--config", str(config_path), "--screen-name", "Desk"]) == 0
        assert path.exists()

    def test_bad_size(self, tmp_path):
        assert main([str(tmp_path / "out.png"), "--size", "huge"]) == 1

    def test_missing_config(self, tmp_path):
        assert main([str(tmp_path / "out.png"), "--config", str(tmp_path / "none.json")]) == 1
