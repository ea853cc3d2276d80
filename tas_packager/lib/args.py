from __future__ import annotations

import argparse
import sys
from typing import NoReturn


class HelpOnErrorParser(argparse.ArgumentParser):
    """Print the full help on a bad argument and exit 1 (argparse uses 2)."""

    def error(self, message: str) -> NoReturn:
        self.print_help(sys.stderr)
        self.exit(1, f"\n{self.prog}: error: {message}\n")
