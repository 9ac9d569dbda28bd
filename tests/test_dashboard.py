import locale

import pytest
from unittest.mock import MagicMock

from conftest import rows_for
from app import Dashboard, RosterDashboardApp, configure_locale
from services.config import ConfigStore
from services.remote import RemoteError
from widgets.config_form import ConfigForm
from widgets.roster_table import RosterTable


async def wait_until(pilot, condition, attempts=50):
    for _ in range(attempts):
        if condition():
            return True
        await pilot.pause(0.02)
    return condition()


@pytest.fixture
def table(two_students):
    table = MagicMock()
    table.count.return_value = 2
    table.select_all.return_value = rows_for(two_students)
    return table


@pytest.fixture
def configured_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("ROSTER_EXPORT_DIR", str(tmp_path / "exports"))
    return tmp_path


@pytest.mark.asyncio
async def test_dashboard_loads_roster(configured_env, table):
    app = RosterDashboardApp(
        config_store=ConfigStore(configured_env / "state"),
        table_factory=MagicMock(return_value=table),
    )
    async with app.run_test() as pilot:
        assert await wait_until(pilot, lambda: len(app.state_manager.state.roster) == 2)
        await pilot.pause()

        assert isinstance(app.screen, Dashboard)
        assert app.screen.query_one("#roster-table", RosterTable).records == app.state_manager.state.display_view
        assert app.state_manager.state.stats.active == 1


@pytest.mark.asyncio
async def test_dashboard_opens_config_when_unconfigured(monkeypatch, tmp_path):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    factory = MagicMock()
    app = RosterDashboardApp(config_store=ConfigStore(tmp_path), table_factory=factory)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert isinstance(app.screen, ConfigForm)
        factory.assert_not_called()


@pytest.mark.asyncio
async def test_dashboard_shows_load_error(configured_env, table):
    table.select_all.return_value = None
    table.select_all.side_effect = RemoteError("permission denied for table students")
    app = RosterDashboardApp(
        config_store=ConfigStore(configured_env / "state"),
        table_factory=MagicMock(return_value=table),
    )
    async with app.run_test() as pilot:
        assert await wait_until(pilot, lambda: app.state_manager.state.last_error is not None)
        await pilot.pause()

        assert app.state_manager.state.last_error.kind == "permission"
        assert app.screen.query_one("#error-panel").display is True
        assert app.state_manager.state.stats.total == 0


@pytest.mark.asyncio
async def test_dashboard_export(configured_env, table):
    app = RosterDashboardApp(
        config_store=ConfigStore(configured_env / "state"),
        table_factory=MagicMock(return_value=table),
    )
    async with app.run_test() as pilot:
        assert await wait_until(pilot, lambda: len(app.state_manager.state.roster) == 2)
        app.state_manager.set_status_filter("active")
        app.screen.action_export()
        await pilot.pause()

    exports = list((configured_env / "exports").glob("students_*.csv"))
    assert len(exports) == 1
    lines = exports[0].read_text(encoding="utf-8").split("\n")
    assert len(lines) == 2
    assert lines[1].startswith('"S001","Ann"')


@pytest.mark.asyncio
async def test_sort_choice_is_remembered(configured_env, table):
    store = ConfigStore(configured_env / "state")
    store.set_last_sort("name-desc")
    app = RosterDashboardApp(config_store=store, table_factory=MagicMock(return_value=table))
    async with app.run_test() as pilot:
        assert await wait_until(pilot, lambda: len(app.state_manager.state.roster) == 2)
        assert [r.full_name for r in app.state_manager.state.display_view] == ["Bob", "Ann"]


def test_configure_locale_survives_missing_locale(monkeypatch):
    calls = []

    def broken_setlocale(category, value):
        calls.append((category, value))
        raise locale.Error("unsupported locale setting")

    monkeypatch.setattr(locale, "setlocale", broken_setlocale)

    configure_locale()

    assert calls == [(locale.LC_COLLATE, "")]
