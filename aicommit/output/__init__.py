"""Terminal Output Formatting Package

Handles colored terminal output and falls back to plain ASCII when
colors or Unicode aren't supported. Honors NO_COLOR and FORCE_COLOR.
"""

import os
import re
import sys
import threading


class Colors:
    """ANSI escape codes for terminal colors."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'
    MAGENTA = '\033[35m'


def _supports_color() -> bool:
    if os.environ.get('NO_COLOR'):
        return False
    if os.environ.get('FORCE_COLOR'):
        return True
    if not hasattr(sys.stdout, 'isatty') or not sys.stdout.isatty():
        return False
    if sys.platform == 'win32':
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
            return True
        except (AttributeError, OSError):
            return False
    return True


def _supports_unicode() -> bool:
    if sys.platform == 'win32':
        try:
            '✓█░'.encode(sys.stdout.encoding or 'utf-8')
            return True
        except (UnicodeEncodeError, LookupError):
            return False
    return True


COLORS_ENABLED = _supports_color()
UNICODE_ENABLED = _supports_unicode()

CHECK = '✓' if UNICODE_ENABLED else '[OK]'
CROSS = '✗' if UNICODE_ENABLED else '[X]'
ARROW = '→' if UNICODE_ENABLED else '->'
RULE = '─' if UNICODE_ENABLED else '-'
BAR_FILLED = '█' if UNICODE_ENABLED else '#'
BAR_EMPTY = '░' if UNICODE_ENABLED else '.'


def _colorize(text: str, *codes: str) -> str:
    if not COLORS_ENABLED:
        return text
    return f"{''.join(codes)}{text}{Colors.RESET}"


def success(text: str) -> str:
    return _colorize(text, Colors.GREEN)


def error(text: str) -> str:
    return _colorize(text, Colors.RED)


def warning(text: str) -> str:
    return _colorize(text, Colors.YELLOW)


def info(text: str) -> str:
    return _colorize(text, Colors.CYAN)


def dim(text: str) -> str:
    return _colorize(text, Colors.DIM)


def bold(text: str) -> str:
    return _colorize(text, Colors.BOLD)


def print_success(message: str) -> None:
    print(f"{success(CHECK)} {message}")


def print_error(message: str) -> None:
    print(f"{error(CROSS)} {error(message)}", file=sys.stderr)


def print_warning(message: str) -> None:
    print(f"{warning('⚠')} {warning(message)}" if UNICODE_ENABLED else f"[!] {message}", file=sys.stderr)


def print_rule(width: int = 50) -> None:
    print(dim(RULE * width))


# Types that read alike share a color
_TYPE_COLOR_GROUPS = {
    Colors.GREEN: ('feat', 'perf'),
    Colors.RED: ('fix', 'security'),
    Colors.YELLOW: ('refactor', 'revert'),
    Colors.CYAN: ('docs', 'i18n', 'ci', 'build'),
    Colors.MAGENTA: ('test',),
    Colors.DIM: ('chore', 'style', 'deps'),
}

COMMIT_TYPE_COLORS = {name: color for color, names in _TYPE_COLOR_GROUPS.items() for name in names}

# status -> (symbol, color) for the file list
STATUS_STYLES = {
    'added': ('+', Colors.GREEN),
    'deleted': ('-', Colors.RED),
    'modified': ('~', Colors.YELLOW),
    'renamed': ('~', Colors.YELLOW),
}


def colorize_commit_type(message: str) -> str:
    """Color the commit type prefix on the first line of a commit message."""
    if not COLORS_ENABLED:
        return message
    lines = message.split('\n')
    match = re.match(r'^(\w+)(\([^)]*\))?(!?:)', lines[0])
    if match:
        color = COMMIT_TYPE_COLORS.get(match.group(1))
        if color:
            prefix = match.group(0)
            lines[0] = _colorize(prefix, Colors.BOLD, color) + lines[0][len(prefix):]
    return '\n'.join(lines)


def status_symbol(status: str) -> str:
    symbol, color = STATUS_STYLES.get(status, ('~', Colors.YELLOW))
    return _colorize(symbol, color)


def change_bar(additions: int, deletions: int, max_changes: int, width: int = 12) -> str:
    """Proportional bar: green for additions, red for deletions."""
    if max_changes <= 0:
        return dim(BAR_EMPTY * width)

    total = additions + deletions
    filled = min(width, round(total / max_changes * width))
    added = round(additions / total * filled) if total else 0
    deleted = filled - added

    return (
        _colorize(BAR_FILLED * added, Colors.GREEN) if added else ''
    ) + (
        _colorize(BAR_FILLED * deleted, Colors.RED) if deleted else ''
    ) + dim(BAR_EMPTY * (width - filled))


class Spinner:
    """Animated spinner for long operations. Use as context manager."""
    FRAMES_UNICODE = ['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏']
    FRAMES_ASCII = ['-', '\\', '|', '/']

    def __init__(self, label: str = ""):
        self.label = label
        self._thread = None
        self._stop_event = threading.Event()
        self._frames = self.FRAMES_UNICODE if UNICODE_ENABLED else self.FRAMES_ASCII

    def _spin(self):
        idx = 0
        while not self._stop_event.is_set():
            frame = self._frames[idx % len(self._frames)]
            print(f'\r\033[K{frame} {dim(self.label)}', end='', flush=True)
            idx += 1
            self._stop_event.wait(0.08)

    def __enter__(self):
        if sys.stdout.isatty():
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._spin, daemon=True)
            self._thread.start()
        return self

    def __exit__(self, *args):
        self._stop_event.set()
        if self._thread:
            self._thread.join()
        if sys.stdout.isatty():
            print('\r\033[K', end='', flush=True)


__all__ = [
    "Colors", "COLORS_ENABLED", "UNICODE_ENABLED",
    "CHECK", "CROSS", "ARROW", "RULE", "BAR_FILLED", "BAR_EMPTY",
    "success", "error", "warning", "info", "dim", "bold",
    "print_success", "print_error", "print_warning", "print_rule",
    "colorize_commit_type", "status_symbol", "change_bar",
    "Spinner", "COMMIT_TYPE_COLORS", "STATUS_STYLES",
]
