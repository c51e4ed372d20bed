"""Tests for relay app lifecycle (idle sweeper ownership and shutdown)."""

from starlette.testclient import TestClient

from minefield.server.app import create_app
from minefield.server.settings import MinefieldServerSettings


class TestIdleSweeperLifecycle:
    def test_sweeper_runs_for_app_lifetime(self):
        settings = MinefieldServerSettings(idle_ttl_seconds=60, sweep_interval_seconds=30)
        app = create_app(settings=settings)
        registry = app.state.session_manager._registry

        with TestClient(app):
            task = registry._sweeper_task
            assert task is not None
            assert not task.done()

        assert registry._sweeper_task is None

    def test_no_sweeper_when_ttl_disabled(self):
        app = create_app(settings=MinefieldServerSettings(idle_ttl_seconds=0))

        with TestClient(app):
            assert app.state.session_manager._registry._sweeper_task is None

    def test_app_state_exposes_settings(self):
        settings = MinefieldServerSettings(max_games=7, idle_ttl_seconds=0)
        app = create_app(settings=settings)

        assert app.state.settings is settings
        assert app.state.session_manager._max_games == 7
