"""Command-line viewer for issue exports.

    issue-table issues.json
    issue-table --accessibility --states "Open,In Progress,Done" issues.csv

Loads a JSON array of objects or a CSV file and shows it in the table.
Copy goes through the configured clipboard provider, view pages the record
rendered with Rich, and refresh reloads the file.
"""

import csv
import json
import logging
import os
import sys
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from issue_table.clipboard import ClipboardConfig, ClipboardProvider, create_provider
from issue_table.config import TableConfig
from issue_table.data import NoDataError, TableData
from issue_table.detail import DetailRenderError
from issue_table.selection import STATUS_COLUMN
from issue_table.table import Table, TableCallbacks
from issue_table.transition import TransitionRequest

logger = logging.getLogger(__name__)

ACCESSIBILITY_HELP = """
Issue Table Accessibility Features
==================================

Issue Table includes accessibility features for screen readers.

Usage:
  issue-table FILE --accessibility    Enable accessibility features
  issue-table --accessibility-help    Display this help message

When accessibility mode is enabled:
- All UI interactions will be announced for screen readers
- Navigation changes will be verbalized
- Additional key commands will be available

Keyboard shortcuts in accessibility mode:
- Ctrl+S: Speak the current selection
- Ctrl+A: Hear accessibility help message
- Arrow keys: Navigate between items
- Tab: Move between UI sections
- Enter: Select the current item

To enable accessibility mode permanently, set the environment variable:
  export ISSUE_TABLE_ACCESSIBILITY_MODE=1
"""


def configure_logging() -> None:
    """Keep log output off the terminal while the table runs.

    Logs go to ISSUE_TABLE_TRACE_LOG when set, otherwise nowhere.
    """
    trace_log_path = os.environ.get("ISSUE_TABLE_TRACE_LOG")
    root_logger = logging.getLogger()
    if trace_log_path:
        os.makedirs(os.path.dirname(os.path.abspath(trace_log_path)), exist_ok=True)
        file_handler = logging.FileHandler(trace_log_path)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))
        root_logger.handlers = [file_handler]
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.handlers = [logging.NullHandler()]
        root_logger.setLevel(logging.CRITICAL + 1)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def records_to_rows(records: Sequence[Dict[str, Any]], columns: Optional[List[str]] = None) -> List[List[str]]:
    """Turn a list of records into header + rows.

    Columns default to the keys of the first record, in order. Missing
    fields become empty cells.
    """
    if not records:
        return [list(columns)] if columns else []
    if not columns:
        columns = list(records[0].keys())
    rows = [list(columns)]
    for record in records:
        rows.append([_cell(record.get(name)) for name in columns])
    return rows


def load_file(path: str, columns: Optional[List[str]] = None) -> TableData:
    """Load a JSON array of objects or a CSV file with a header row.

    Raises:
        ValueError: The file is not in a supported shape.
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")

    if file_path.suffix.lower() == ".csv":
        records = list(csv.DictReader(StringIO(text)))
    else:
        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON: {e}") from e
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ValueError(f"{path}: expected a JSON array of objects")

    logger.info(f"Loaded {len(records)} records from {path}")
    return TableData(records_to_rows(records, columns))


def render_record(data: TableData, row: int, width: int = 100) -> str:
    """Render one row as a Rich panel, returned as ANSI text for the pager.

    Raises:
        DetailRenderError: row does not point at a data row.
    """
    if row < 1 or row >= len(data):
        raise DetailRenderError(f"no record at row {row}")

    fields = RichTable(box=box.SIMPLE, show_header=False, expand=True)
    fields.add_column("Field", style="bold cyan", no_wrap=True)
    fields.add_column("Value")
    for name, value in zip(data.header, data[row]):
        fields.add_row(name, value)

    buffer = StringIO()
    console = Console(file=buffer, width=width, force_terminal=True, color_system="truecolor")
    console.print(Panel(fields, title=data.get(row, 0), title_align="left"))
    return buffer.getvalue()


class IssueTableApp:
    """Wires a loaded file to a Table with file-backed callbacks."""

    def __init__(
        self,
        path: str,
        config: TableConfig,
        columns: Optional[List[str]] = None,
        states: Optional[List[str]] = None,
        clipboard: Optional[ClipboardProvider] = None,
        clipboard_config: Optional[ClipboardConfig] = None,
    ):
        self.path = path
        self.columns = columns
        self.states = states or []
        self.clipboard_config = clipboard_config or ClipboardConfig.from_env()
        self.clipboard = clipboard or create_provider(self.clipboard_config)
        self.data = load_file(path, columns)
        self.table = Table(config=config, callbacks=self._callbacks())

    def _callbacks(self) -> TableCallbacks:
        return TableCallbacks(
            view_mode_func=self.view,
            move_func=self.move if self.states else None,
            refresh_func=self.refresh,
            copy_func=self.copy,
            copy_key_func=self.copy_key,
        )

    def run(self) -> None:
        self.table.paint(self.data)

    def copy(self, row: int, col: int, data: TableData) -> None:
        if row < 1:
            return
        self.clipboard.copy(self.clipboard_config.field_separator.join(data[row]))

    def copy_key(self, row: int, col: int, data: TableData) -> None:
        if row < 1:
            return
        self.clipboard.copy(data.get(row, 0))

    def view(self, row: int, col: int, data: TableData):
        def fetch() -> TableData:
            return data

        def render(fetched: TableData) -> str:
            return render_record(fetched, row)

        return fetch, render

    def move(self, row: int, col: int) -> TransitionRequest:
        status_col = self.data.get_index(STATUS_COLUMN)
        if row < 1:
            raise ValueError("no issue selected")
        if status_col < 0:
            raise ValueError(f"no {STATUS_COLUMN} column")

        def handler(label: str) -> None:
            logger.info(f"Moving {self.data.get(row, 0)} to {label}")

        def on_success(r: int, c: int, label: str) -> None:
            self.data.update(r, status_col, label)

        return TransitionRequest(
            key=self.data.get(row, 0),
            candidate_states=self.states,
            handler=handler,
            current_state=self.data.get(row, status_col),
            on_success=on_success,
        )

    def refresh(self) -> None:
        self.data = load_file(self.path, self.columns)
        self.table.paint(self.data)


def _split_list(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def main(argv: Optional[List[str]] = None) -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="issue-table",
        description="Browse an issue export in an accessible terminal table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keys:
  arrows/home/end  navigate       v  view record     m  move to state
  c  copy row      Ctrl+K  copy key    Ctrl+R  reload    ?  help    q  quit
        """,
    )
    parser.add_argument("file", nargs="?", help="JSON array of objects or CSV file")
    parser.add_argument(
        "--columns",
        help="Comma-separated column order (default: keys of the first record)"
    )
    parser.add_argument(
        "--accessibility", "-a",
        action="store_true",
        help="Enable screen reader announcements"
    )
    parser.add_argument(
        "--accessibility-help",
        action="store_true",
        help="Describe the accessibility features and exit"
    )
    parser.add_argument(
        "--states",
        help="Comma-separated states offered by the move action, e.g. \"Open,In Progress,Done\""
    )
    parser.add_argument(
        "--fixed-columns",
        type=int,
        default=0,
        help="Columns that stay visible while scrolling horizontally"
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env)"
    )

    args = parser.parse_args(argv)

    if args.accessibility_help:
        print(ACCESSIBILITY_HELP)
        return

    if not args.file:
        parser.error("the following arguments are required: file")

    load_dotenv(args.env_file)
    configure_logging()

    if not sys.stdout.isatty():
        sys.exit("Error: issue-table requires an interactive terminal.")

    config = TableConfig.from_env(
        accessibility=True if args.accessibility else None,
        fixed_columns=args.fixed_columns,
    )

    try:
        app = IssueTableApp(
            args.file,
            config,
            columns=_split_list(args.columns),
            states=_split_list(args.states),
        )
    except (OSError, ValueError) as e:
        sys.exit(f"Error: {e}")

    if not config.footer_text:
        config.footer_text = f"Showing {app.data.data_row_count} issues from {Path(args.file).name}"

    try:
        app.run()
    except NoDataError:
        sys.exit(f"Error: {args.file} contains no rows")
