"""
Output module for gitpusher.

Provides consistent output formatting across all commands:
- JSONL: Newline-delimited JSON for piping
- Pretty (default): Human-readable tables using Rich

Usage:
    from gitpusher.output import emit, emit_error

    emit(repos, pretty=not json_output, columns=['full_name', 'private'])
    emit_error("Not found", type="api_error", context={"status": 404})
"""

import json
import sys
from typing import Iterable, Any, Dict, Optional, List

from rich.console import Console
from rich.table import Table


def _as_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    if isinstance(item, dict):
        return item
    return {'value': str(item)}


def emit(
    items: Iterable[Any],
    pretty: bool = False,
    columns: Optional[List[str]] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Emit items as JSONL or pretty table.

    Args:
        items: Items to emit (should have to_dict() method or be dicts)
        pretty: If True, render as table. If False, output JSONL
        columns: Column names for table (auto-detected if None)
        console: Rich console for table output
    """
    if pretty:
        _emit_table(items, columns, console)
    else:
        for item in items:
            print(json.dumps(_as_dict(item), ensure_ascii=False), flush=True)


def _emit_table(items: Iterable[Any], columns: Optional[List[str]] = None,
                console: Optional[Console] = None) -> None:
    """Emit items as a Rich table."""
    rows = [_as_dict(item) for item in items]
    console = console or Console()

    if not rows:
        console.print("[yellow]No results found[/yellow]")
        return

    columns = columns or list(rows[0].keys())[:8]

    table = Table(show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*[_format_value(row.get(col, '')) for col in columns])

    console.print(table)


def _format_value(value: Any, max_len: int = 60) -> str:
    """Format a value for table display."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, (list, dict)):
        return f'[{len(value)}]'

    s = str(value)
    if len(s) > max_len:
        return s[:max_len-3] + '...'
    return s


def emit_error(
    error: str,
    type: str = "error",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Emit error to stderr as JSON.

    Args:
        error: Error message
        type: Error type (e.g., "validation_error", "api_error")
        context: Additional context dict
    """
    obj = {
        'error': error,
        'type': type
    }
    if context:
        obj['context'] = context

    print(json.dumps(obj, ensure_ascii=False), file=sys.stderr, flush=True)
