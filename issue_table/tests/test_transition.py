"""Tests for the transition (move) flow."""

import pytest

from conftest import DeferredTaskRunner, announcements
from issue_table import style as styles
from issue_table.config import TableConfig
from issue_table.dispatcher import Action
from issue_table.table import Table, TableCallbacks
from issue_table.transition import (
    ACTION_PAGE,
    CONTEXT_TEXT,
    PROCESSING_TEXT,
    SECONDARY_PAGE,
    TransitionError,
    TransitionRequest,
    TransitionState,
)

STATES = ["Open", "In Progress", "Done"]


class Recorder:
    """Move callbacks that record what the flow did with them."""

    def __init__(self, current="Open", fail_with=None, with_on_success=True):
        self.current = current
        self.fail_with = fail_with
        self.with_on_success = with_on_success
        self.handled = []
        self.applied = []
        self.requested = []

    def move(self, row, col):
        self.requested.append((row, col))
        return TransitionRequest(
            key=f"X-{row}",
            candidate_states=STATES,
            handler=self.handle,
            current_state=self.current,
            on_success=self.apply if self.with_on_success else None,
        )

    def handle(self, label):
        self.handled.append(label)
        if self.fail_with is not None:
            error, self.fail_with = self.fail_with, None
            raise error

    def apply(self, row, col, label):
        self.applied.append((row, col, label))


def make_table(surface, runner, recorder, accessibility=True):
    return Table(
        config=TableConfig(accessibility=accessibility),
        callbacks=TableCallbacks(move_func=recorder.move),
        surface=surface,
        runner=runner,
    )


def open_modal(surface, table, rows, then=None):
    def script():
        assert table.dispatcher.dispatch(Action.MOVE)
        if then:
            then()

    surface.script = script
    table.paint(rows)


class TestTransitionRequest:
    """Tests for request defaults."""

    def test_default_index_matches_current(self):
        request = TransitionRequest("X-1", STATES, handler=print, current_state="In Progress")
        assert request.default_index() == 1

    def test_default_index_unmatched(self):
        request = TransitionRequest("X-1", STATES, handler=print, current_state="Blocked")
        assert request.default_index() == 0

    def test_duplicate_labels_collapsed(self):
        request = TransitionRequest("X-1", ["Open", "Done", "Open"], handler=print)
        assert request.candidate_states == ["Open", "Done"]


class TestOpen:
    """Tests for showing the options."""

    def test_modal_shows_options(self, surface, runner, issue_rows, capsys):
        recorder = Recorder(current="In Progress")
        table = make_table(surface, runner, recorder)
        open_modal(surface, table, issue_rows)

        assert table.transition.state == TransitionState.AWAITING_CHOICE
        assert surface.front_page() == ACTION_PAGE
        assert not surface.is_page_visible(SECONDARY_PAGE)
        assert table.action.buttons == STATES
        assert table.action.focus_index == 1
        assert table.action.text == "Select desired state to transition X-1 to:"
        assert recorder.requested == [(1, 0)]
        assert announcements(capsys.readouterr().err) == [
            CONTEXT_TEXT,
            "Transition menu for X-1. Available options: Open, In Progress, Done",
        ]

    def test_second_move_ignored_while_active(self, surface, issue_rows):
        runner = DeferredTaskRunner()
        recorder = Recorder()
        table = make_table(surface, runner, recorder)

        def press_again():
            assert table.transition.begin(recorder.move, 1, 0) is False
            assert table.dispatcher.dispatch(Action.MOVE) is True

        open_modal(surface, table, issue_rows, then=press_again)
        assert len(runner.pending) == 1

    def test_move_func_failure(self, surface, runner, issue_rows, capsys):
        def move(row, col):
            raise ValueError("no transitions")

        table = Table(
            config=TableConfig(accessibility=True),
            callbacks=TableCallbacks(move_func=move),
            surface=surface,
            runner=runner,
        )
        open_modal(surface, table, issue_rows)
        assert table.transition.state == TransitionState.IDLE
        assert not surface.is_page_visible(SECONDARY_PAGE)
        assert not surface.is_page_visible(ACTION_PAGE)
        assert "Error: no transitions" in announcements(capsys.readouterr().err)


class TestChoose:
    """Tests for running the handler."""

    def test_success(self, surface, runner, issue_rows, capsys):
        recorder = Recorder()
        table = make_table(surface, runner, recorder)

        def choose_done():
            table.action.focus_next()
            table.action.focus_next()
            table.action.press()

        open_modal(surface, table, issue_rows, then=choose_done)

        assert recorder.handled == ["Done"]
        assert recorder.applied == [(1, 0, "Done")]
        assert table.transition.state == TransitionState.IDLE
        assert not surface.is_page_visible(ACTION_PAGE)
        assert surface.front_page() == "primary"
        assert table.render_count == 2
        assert table.selection.position == (1, 0)
        assert surface.force_draws == 1
        said = announcements(capsys.readouterr().err)
        assert said[-2:] == [PROCESSING_TEXT, "Successfully transitioned X-1 to Done"]
        assert table.action.footer_text == CONTEXT_TEXT

    def test_success_without_on_success_still_repaints(self, surface, runner, issue_rows):
        recorder = Recorder(with_on_success=False)
        table = make_table(surface, runner, recorder)
        open_modal(surface, table, issue_rows, then=table.action.press)
        assert recorder.handled == ["Open"]
        assert table.render_count == 2

    def test_failure_keeps_modal_open(self, surface, runner, issue_rows, capsys):
        recorder = Recorder(fail_with=TransitionError("not allowed"))
        table = make_table(surface, runner, recorder)
        open_modal(surface, table, issue_rows, then=table.action.press)

        assert recorder.handled == ["Open"]
        assert recorder.applied == []
        assert table.transition.state == TransitionState.AWAITING_CHOICE
        assert surface.front_page() == ACTION_PAGE
        assert table.action.footer_text == "Error: not allowed"
        assert table.action.footer_style == styles.ERROR
        assert table.render_count == 1
        assert announcements(capsys.readouterr().err)[-1] == "Error: not allowed"

    def test_retry_after_failure(self, surface, runner, issue_rows):
        recorder = Recorder(fail_with=RuntimeError("timeout"))
        table = make_table(surface, runner, recorder)

        def press_twice():
            table.action.press()
            table.action.press()

        open_modal(surface, table, issue_rows, then=press_twice)
        assert recorder.handled == ["Open", "Open"]
        assert recorder.applied == [(1, 0, "Open")]
        assert table.transition.state == TransitionState.IDLE

    def test_choose_ignored_when_not_awaiting(self, surface, runner, issue_rows):
        recorder = Recorder()
        table = make_table(surface, runner, recorder)
        surface.script = lambda: table.transition.choose(0, "Open")
        table.paint(issue_rows)
        assert recorder.handled == []

    def test_cancel_refused_while_processing(self, surface, runner, issue_rows):
        results = []
        recorder = Recorder()
        table = make_table(surface, runner, recorder)
        recorder.handle = lambda label: results.append(table.transition.cancel())
        open_modal(surface, table, issue_rows, then=table.action.press)
        assert results == [False]


class TestCancel:
    """Tests for leaving the modal without a choice."""

    def test_cancel_awaiting_choice(self, surface, runner, issue_rows):
        recorder = Recorder()
        table = make_table(surface, runner, recorder)
        cancelled = []
        open_modal(surface, table, issue_rows, then=lambda: cancelled.append(table.transition.cancel()))

        assert cancelled == [True]
        assert recorder.handled == []
        assert table.transition.state == TransitionState.IDLE
        assert table.transition.request is None
        assert surface.front_page() == "primary"

    def test_cancel_before_options_arrive(self, surface, issue_rows):
        runner = DeferredTaskRunner()
        recorder = Recorder()
        table = make_table(surface, runner, recorder)

        def cancel_then_load():
            assert table.transition.state == TransitionState.OPTIONS_SHOWN
            assert table.transition.cancel() is True
            runner.run_all()

        open_modal(surface, table, issue_rows, then=cancel_then_load)

        assert recorder.requested == [(1, 0)]
        assert recorder.handled == []
        assert table.transition.state == TransitionState.IDLE
        assert not surface.is_page_visible(ACTION_PAGE)
        assert not surface.is_page_visible(SECONDARY_PAGE)

    def test_cancel_when_idle(self, surface, runner, issue_rows):
        table = make_table(surface, runner, Recorder())
        results = []
        surface.script = lambda: results.append(table.transition.cancel())
        table.paint(issue_rows)
        assert results == [False]

    @pytest.mark.parametrize("key", ["escape", "q"])
    def test_cancel_keys(self, surface, runner, issue_rows, key):
        recorder = Recorder()
        table = make_table(surface, runner, recorder)

        def press_cancel_key():
            bindings = [
                b for b in surface.key_bindings.bindings
                if tuple(str(getattr(k, "value", k)) for k in b.keys) == (key,) and b.filter()
            ]
            assert len(bindings) == 1
            bindings[0].handler(None)

        open_modal(surface, table, issue_rows)
        press_cancel_key()
        assert table.transition.state == TransitionState.IDLE
        assert surface.stopped == 0


class TestRenderThreadHandOff:
    """The flow with posted UI changes queued behind background work."""

    def test_instructions_announced_before_options(self, queued_surface, runner, issue_rows, capsys):
        table = make_table(queued_surface, runner, Recorder())

        def press_move():
            table.dispatcher.dispatch(Action.MOVE)
            # The options are loaded but nothing posted has run yet
            assert announcements(capsys.readouterr().err) == [
                CONTEXT_TEXT,
                "Transition menu for X-1. Available options: Open, In Progress, Done",
            ]
            assert table.transition.state == TransitionState.OPTIONS_SHOWN
            assert queued_surface.front_page() == "primary"
            queued_surface.drain()

        queued_surface.script = press_move
        table.paint(issue_rows)

        assert table.transition.state == TransitionState.AWAITING_CHOICE
        assert queued_surface.front_page() == ACTION_PAGE
        assert table.action.footer_text == CONTEXT_TEXT

    def test_cancel_before_modal_is_drawn(self, queued_surface, runner, issue_rows):
        table = make_table(queued_surface, runner, Recorder())

        def press_move_then_escape():
            table.dispatcher.dispatch(Action.MOVE)
            assert table.transition.cancel() is True
            queued_surface.drain()

        queued_surface.script = press_move_then_escape
        table.paint(issue_rows)

        assert table.transition.state == TransitionState.IDLE
        assert not queued_surface.is_page_visible(ACTION_PAGE)
        assert not queued_surface.is_page_visible(SECONDARY_PAGE)

    def test_reopen_after_cancel_uses_new_row(self, queued_surface, issue_rows, capsys):
        runner = DeferredTaskRunner()
        recorder = Recorder()
        table = make_table(queued_surface, runner, recorder)

        def cancel_and_move_other_row():
            table.dispatcher.dispatch(Action.MOVE)
            assert table.transition.cancel() is True
            table.selection.move_rows(2)
            assert table.dispatcher.dispatch(Action.MOVE) is True
            # The cancelled load finishes first, then the new one
            runner.run_all()
            queued_surface.drain()

            assert table.action.text == "Select desired state to transition X-3 to:"
            assert table.transition.state == TransitionState.AWAITING_CHOICE

            table.action.focus_next()
            table.action.focus_next()
            table.action.press()
            runner.run_all()
            queued_surface.drain()

        queued_surface.script = cancel_and_move_other_row
        table.paint(issue_rows)

        assert recorder.requested == [(1, 0), (3, 0)]
        assert recorder.handled == ["Done"]
        assert recorder.applied == [(3, 0, "Done")]
        assert table.transition.state == TransitionState.IDLE
        said = announcements(capsys.readouterr().err)
        assert "Transition menu for X-1. Available options: Open, In Progress, Done" not in said
        assert "Successfully transitioned X-3 to Done" in said


def test_move_flow_silent_without_accessibility(surface, runner, issue_rows, capsys):
    recorder = Recorder(fail_with=TransitionError("not allowed"))
    table = make_table(surface, runner, recorder, accessibility=False)

    def fail_then_succeed():
        table.dispatcher.dispatch(Action.MOVE)
        table.action.press()
        table.action.press()

    surface.script = fail_then_succeed
    table.paint(issue_rows)

    assert recorder.applied == [(1, 0, "Open")]
    assert table.transition.state == TransitionState.IDLE
    assert capsys.readouterr().err == ""
