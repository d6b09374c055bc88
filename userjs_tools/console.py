"""
User facing messages of the command line tools.

Everything goes to stderr so that stdout stays usable for output that a
caller may want to capture.
"""
import argparse
import logging
import sys
from typing import Optional, TextIO

from userjs_tools.config import Settings
from userjs_tools.models.schemas import UsageError

RED = '\033[31m'
GREEN = '\033[32m'
YELLOW = '\033[33m'
BOLD_BLUE = '\033[1;34m'
RESET = '\033[0m'


class Console:
    def __init__(self, settings: Settings, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr
        isatty = getattr(self.stream, 'isatty', None)
        self.color = settings.color and bool(isatty and isatty())

    def _paint(self, color: str, text: str) -> str:
        return f"{color}{text}{RESET}" if self.color else text

    def write(self, text: str = '', color: Optional[str] = None):
        self.stream.write(self._paint(color, text) if color else text)
        self.stream.flush()

    def info(self, text: str = ''):
        self.write(text + '\n')

    def ok(self, text: str):
        self.write(f"OK: {text}\n", GREEN)

    def warning(self, text: str):
        self.write(f"WARNING: {text}\n", YELLOW)

    def error(self, text: str):
        self.write(f"ERROR: {text}\n", RED)

    def confirm(self, question: str) -> bool:
        """Ask a y/N question; anything but y/Y is a no."""
        self.write(f"{question} [y/N] ", RED)
        try:
            reply = input()
        except EOFError:
            reply = ''
        self.write('\n')
        return reply.strip() in ('y', 'Y')

    def pause(self, text: str = 'Press Enter to continue. ') -> bool:
        """Wait for Enter. False when stdin is closed."""
        self.write(text)
        try:
            input()
        except EOFError:
            return False
        self.write('\n')
        return True

    def ask(self, prompt: str) -> Optional[str]:
        self.write(prompt)
        try:
            return input().strip()
        except EOFError:
            return None


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


class OptionParser(argparse.ArgumentParser):
    """ArgumentParser reporting bad command lines as UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(message)
