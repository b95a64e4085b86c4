"""
Progress reporting utilities for gitpusher.

Two halves:
- ProgressTracker sits inside the push pipeline. It serializes reports from
  worker threads and never lets the percentage go backwards.
- ProgressReporter is the CLI's sink. It draws the percentage and phase
  message on stderr, keeping stdout clean for data.
"""

import os
import signal
import sys
import threading
from typing import Callable, List, Optional

from .domain.push import ProgressReport

ProgressSink = Callable[[int, str], None]


class ProgressTracker:
    """Thread-safe, monotonic front for a caller-supplied progress sink."""

    def __init__(self, sink: Optional[ProgressSink] = None):
        self.sink = sink
        self.history: List[ProgressReport] = []
        self._lock = threading.Lock()
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def __call__(self, percentage: int, message: str) -> None:
        """Record a report and forward it to the sink, clamped to [current, 100]."""
        with self._lock:
            value = max(self._current, min(100, max(0, int(percentage))))
            self._current = value
            report = ProgressReport(percentage=value, message=message)
            self.history.append(report)
            if self.sink is not None:
                self.sink(report.percentage, report.message)


class ProgressReporter:
    """Handles progress reporting to stderr while keeping stdout clean for data."""

    def __init__(self, enabled: Optional[bool] = None, force_tty: bool = False,
                 use_unicode: Optional[bool] = None, use_colors: Optional[bool] = None,
                 stream=None):
        """
        Initialize progress reporter.

        Args:
            enabled: Explicitly enable/disable progress. None = auto-detect
            force_tty: Treat the stream as a TTY even if it's not (for testing)
            use_unicode: Use Unicode characters for the progress bar
            use_colors: Use ANSI colors in output
            stream: Where to write (default: stderr)
        """
        self.stream = stream or sys.stderr
        is_tty = force_tty or (hasattr(self.stream, 'isatty') and self.stream.isatty())
        self.is_tty = is_tty

        if enabled is None:
            if os.environ.get('GITPUSHER_PROGRESS') == '0':
                enabled = False
            elif os.environ.get('GITPUSHER_PROGRESS') == '1':
                enabled = True
            else:
                enabled = True
        self.enabled = enabled

        if use_unicode is None:
            encoding = getattr(self.stream, 'encoding', None) or ''
            self.use_unicode = encoding.lower() in ['utf-8', 'utf8']
        else:
            self.use_unicode = use_unicode

        if use_colors is None:
            self.use_colors = is_tty and os.environ.get('NO_COLOR') is None
        else:
            self.use_colors = use_colors

        self.width = 30
        self.last_percentage = -1
        self._lock = threading.Lock()

        self.colors = {
            'reset': '\033[0m',
            'dim': '\033[2m',
            'red': '\033[31m',
            'green': '\033[32m',
            'cyan': '\033[36m',
        }

        if self.use_unicode:
            self.bar_chars = {'filled': '█', 'empty': '░', 'start': '│', 'end': '│'}
        else:
            self.bar_chars = {'filled': '#', 'empty': '-', 'start': '[', 'end': ']'}

    def _colorize(self, text: str, color: str) -> str:
        """Add color to text if colors are enabled."""
        if self.use_colors and color in self.colors:
            return f"{self.colors[color]}{text}{self.colors['reset']}"
        return text

    def render(self, percentage: int, message: str) -> str:
        """Build the one-line progress display."""
        filled = int(self.width * percentage / 100)
        bar = self.bar_chars['start']
        bar += self.bar_chars['filled'] * filled
        bar += self.bar_chars['empty'] * (self.width - filled)
        bar += self.bar_chars['end']
        bar = self._colorize(bar, 'green' if percentage >= 100 else 'cyan')
        return f"{bar} {percentage:>3d}% {message}"

    def __call__(self, percentage: int, message: str) -> None:
        """Progress sink: draw the bar in place on a TTY, one line per report otherwise."""
        if not self.enabled:
            return

        with self._lock:
            line = self.render(percentage, message)
            if self.is_tty:
                try:
                    columns = os.get_terminal_size(self.stream.fileno()).columns
                except (AttributeError, OSError, ValueError):
                    columns = 80
                print(f"\r{line:<{columns}}"[:columns + 1], end='', file=self.stream, flush=True)
                if percentage >= 100:
                    print(file=self.stream, flush=True)
            else:
                print(line, file=self.stream, flush=True)
            self.last_percentage = percentage

    def close(self) -> None:
        """End an unfinished in-place line (e.g. after a failed push)."""
        if self.enabled and self.is_tty and 0 <= self.last_percentage < 100:
            print(file=self.stream, flush=True)


def install_interrupt_handler(cancel: threading.Event) -> Callable[[], None]:
    """
    Route Ctrl+C to a cancellation event.

    The first interrupt asks the running push to stop at its next step; a
    second one exits immediately with status 130.

    Returns:
        Function restoring the previous SIGINT handler
    """
    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is not threading.main_thread():
        return lambda: None

    previous = signal.getsignal(signal.SIGINT)

    def _handle_interrupt(signum, frame):
        if cancel.is_set():
            print("\n\nInterrupted by user", file=sys.stderr, flush=True)
            sys.exit(130)
        cancel.set()
        print("\nCancelling after the current step (Ctrl+C again to abort)...",
              file=sys.stderr, flush=True)

    signal.signal(signal.SIGINT, _handle_interrupt)

    def restore():
        signal.signal(signal.SIGINT, previous)

    return restore
