"""Tests for the detail view flow."""

from unittest.mock import MagicMock

import pytest

from issue_table.data import TableData
from issue_table.detail import SECONDARY_PAGE, DetailFlow, DetailRenderError


@pytest.fixture
def detail_surface(surface):
    surface.add_page("primary", object(), True)
    surface.add_page(SECONDARY_PAGE, object(), False)
    return surface


def test_pages_rendered_output(detail_surface, runner, issue_rows):
    pager = MagicMock()
    flow = DetailFlow(detail_surface, runner, pager=pager)
    fetch = MagicMock(return_value={"key": "X-2"})
    render = MagicMock(return_value="rendered X-2")

    flow.open(lambda r, c, data: (fetch, render), 2, 0, TableData(issue_rows))

    assert runner.spawned == ["detail"]
    render.assert_called_once_with({"key": "X-2"})
    pager.assert_called_once_with("rendered X-2")
    assert len(detail_surface.suspended) == 1
    assert not detail_surface.is_page_visible(SECONDARY_PAGE)


def test_render_error_skips_pager(detail_surface, runner, issue_rows):
    pager = MagicMock()
    flow = DetailFlow(detail_surface, runner, pager=pager)

    def render(_):
        raise DetailRenderError("nothing to show")

    flow.open(lambda r, c, data: ((lambda: None), render), 1, 0, TableData(issue_rows))

    pager.assert_not_called()
    assert detail_surface.suspended == []
    assert not detail_surface.is_page_visible(SECONDARY_PAGE)


def test_other_errors_propagate(detail_surface, runner, issue_rows):
    flow = DetailFlow(detail_surface, runner, pager=MagicMock())

    def fetch():
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        flow.open(lambda r, c, data: (fetch, str), 1, 0, TableData(issue_rows))
    # The wait page is still taken down
    assert not detail_surface.is_page_visible(SECONDARY_PAGE)
