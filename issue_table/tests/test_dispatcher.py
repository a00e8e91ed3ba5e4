"""Tests for the primary page actions."""

from conftest import announcements
from issue_table.config import TableConfig
from issue_table.dispatcher import COPIED_TEXT, HELP_OPENED_TEXT, HELP_PAGE, Action
from issue_table.keybindings import KeybindingConfig, accessibility_help_text
from issue_table.table import Table, TableCallbacks


def run_actions(surface, runner, rows, actions, accessibility=True, callbacks=None, before=None):
    """Paint a table and dispatch actions from inside the run loop.

    Returns the table and the dispatch results.
    """
    table = Table(
        config=TableConfig(accessibility=accessibility),
        callbacks=callbacks,
        surface=surface,
        runner=runner,
    )
    results = []

    def script():
        if before:
            before(table)
        for action in actions:
            results.append(table.dispatcher.dispatch(action))

    surface.script = script
    table.paint(rows)
    return table, results


class TestCopy:
    """Tests for copy and copy-key."""

    def test_copy(self, surface, runner, issue_rows, capsys):
        copied = []
        callbacks = TableCallbacks(copy_func=lambda r, c, data: copied.append(data[r]))
        _, results = run_actions(surface, runner, issue_rows, [Action.COPY], callbacks=callbacks)
        assert results == [True]
        assert copied == [["X-1", "Open", "Fix bug"]]
        assert announcements(capsys.readouterr().err) == [COPIED_TEXT]

    def test_copy_without_callback(self, surface, runner, issue_rows):
        _, results = run_actions(surface, runner, issue_rows, [Action.COPY, Action.COPY_KEY])
        assert results == [False, False]

    def test_copy_key_is_silent(self, surface, runner, issue_rows, capsys):
        keys = []
        callbacks = TableCallbacks(copy_key_func=lambda r, c, data: keys.append(data.get(r, 0)))
        _, results = run_actions(surface, runner, issue_rows, [Action.COPY_KEY], callbacks=callbacks)
        assert results == [True]
        assert keys == ["X-1"]
        assert announcements(capsys.readouterr().err) == []


class TestPassThrough:
    """Actions without their callback are not consumed."""

    def test_refresh_without_callback(self, surface, runner, issue_rows):
        _, results = run_actions(surface, runner, issue_rows, [Action.REFRESH])
        assert results == [False]
        assert surface.stopped == 0

    def test_view_and_move_without_callback(self, surface, runner, issue_rows):
        _, results = run_actions(surface, runner, issue_rows, [Action.VIEW, Action.MOVE])
        assert results == [False, False]


class TestHelp:
    """Tests for the help page."""

    def test_help_opens_page(self, surface, runner, issue_rows, capsys):
        _, results = run_actions(surface, runner, issue_rows, [Action.HELP])
        assert results == [True]
        assert surface.front_page() == HELP_PAGE
        assert announcements(capsys.readouterr().err) == [HELP_OPENED_TEXT]


class TestAccessibilityActions:
    """Tests for speak-cell and speak-help."""

    def test_disabled_passes_through(self, surface, runner, issue_rows, capsys):
        _, results = run_actions(
            surface, runner, issue_rows,
            [Action.SPEAK_CELL, Action.SPEAK_HELP],
            accessibility=False,
        )
        assert results == [False, False]
        assert capsys.readouterr().err == ""

    def test_speak_cell(self, surface, runner, issue_rows, capsys):
        def before(table):
            table.selection.move_cols(1)
            capsys.readouterr()

        _, results = run_actions(surface, runner, issue_rows, [Action.SPEAK_CELL], before=before)
        assert results == [True]
        assert announcements(capsys.readouterr().err) == ["Row 1, Column 1 (STATUS): Open"]

    def test_speak_help(self, surface, runner, issue_rows, capsys):
        run_actions(surface, runner, issue_rows, [Action.SPEAK_HELP])
        assert announcements(capsys.readouterr().err) == [
            accessibility_help_text(KeybindingConfig())
        ]


class TestView:
    """Tests for the view action."""

    def test_view_announces_and_pages(self, surface, runner, issue_rows, capsys):
        paged = []

        def view_mode(row, col, data):
            return (lambda: data[row]), (lambda record: " | ".join(record))

        def before(table):
            table.detail.pager = paged.append

        _, results = run_actions(
            surface, runner, issue_rows, [Action.VIEW],
            callbacks=TableCallbacks(view_mode_func=view_mode),
            before=before,
        )
        assert results == [True]
        assert paged == ["X-1 | Open | Fix bug"]
        assert announcements(capsys.readouterr().err) == ["Viewing details for X-1"]
        assert not surface.is_page_visible("secondary")


def test_available_matches_dispatch(surface, runner, issue_rows):
    callbacks = TableCallbacks(copy_func=lambda r, c, data: None)
    table, _ = run_actions(surface, runner, issue_rows, [], accessibility=False, callbacks=callbacks)
    dispatcher = table.dispatcher
    assert dispatcher.available(Action.COPY)
    assert dispatcher.available(Action.HELP)
    assert dispatcher.available(Action.QUIT)
    for action in (Action.COPY_KEY, Action.REFRESH, Action.VIEW, Action.MOVE,
                   Action.SPEAK_CELL, Action.SPEAK_HELP):
        assert not dispatcher.available(action)
        assert dispatcher.dispatch(action) is False
