"""Color-coded terminal output for CLI status messages."""

import sys
from typing import Optional, TextIO

TEXT_COLOR_MAPPING = {
    "yellow": "33;1",
    "green": "32;1",
    "red": "31;1",
    "gray": "90",
}


def get_colored_text(text: str, color: str) -> str:
    """
    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )
    return f"\u001b[{TEXT_COLOR_MAPPING[color]}m{text}\u001b[0m"


class UIManager:
    """
    Prints status lines. Color is only applied when the target stream is a
    terminal, so piped tool output stays plain.
    """

    def success(self, message: str) -> None:
        self._print_colored(message, "green")

    def error(self, message: str) -> None:
        self._print_colored(message, "red", file=sys.stderr)

    def warning(self, message: str) -> None:
        self._print_colored(message, "yellow", file=sys.stderr)

    def dim(self, text: str) -> None:
        self._print_colored(text, "gray")

    def _print_colored(self, text: str, color: str, file: Optional[TextIO] = None) -> None:
        stream = file or sys.stdout
        if stream.isatty():
            text = get_colored_text(text, color)
        print(text, file=stream)
        stream.flush()
