"""
Base class for all CLI commands.
"""

import argparse
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List

from sqlmodel import Session

from change_tracking.core.config import get_settings
from change_tracking.core.logging import setup_logging
from change_tracking.infrastructure.db import DatabaseManager


class BaseCommand(ABC):
    """A command run as ``change-tracking <name> [args...]``."""

    description = "No description provided"

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=f"change-tracking {self.__module__.rsplit('.', 1)[-1]}",
            description=self.description,
        )
        self.add_arguments(parser)
        return parser

    def add_arguments(self, parser: argparse.ArgumentParser):
        """Override to add command specific arguments."""
        pass

    @abstractmethod
    def handle(self, **kwargs):
        pass

    def run(self, args: List[str]):
        """Parse arguments and run the command."""
        parsed_args = self.parser.parse_args(args)
        setup_logging(get_settings())
        self.handle(**vars(parsed_args))

    def help(self):
        self.parser.print_help()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session on the configured database."""
        manager = DatabaseManager(get_settings())
        try:
            with manager.get_session() as session:
                yield session
        finally:
            manager.dispose()

    def print_success(self, message: str):
        print(f"\033[92m✓ {message}\033[0m")

    def print_error(self, message: str):
        print(f"\033[91m✗ {message}\033[0m")

    def print_warning(self, message: str):
        print(f"\033[93m⚠ {message}\033[0m")

    def print_info(self, message: str):
        print(f"\033[94mℹ {message}\033[0m")
