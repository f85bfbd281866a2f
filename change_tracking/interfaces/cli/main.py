"""
Command line entry point: ``change-tracking <command> [args...]``.

Commands are discovered from the ``commands`` package; every module that
defines a ``Command`` class is available under its module name.
"""

import argparse
import importlib
import logging
import pkgutil
import sys
from typing import Dict, List, Optional, Type

from change_tracking.core.exceptions import AppException

from . import commands
from .commands.base import BaseCommand

logger = logging.getLogger(__name__)


class CLIManager:
    def __init__(self):
        self.available_commands = self._discover_commands()

    def _discover_commands(self) -> Dict[str, Type[BaseCommand]]:
        """Discover all commands in the commands package."""
        found = {}
        for module_info in pkgutil.iter_modules(commands.__path__):
            if module_info.name.startswith("_") or module_info.name == "base":
                continue
            module = importlib.import_module(f"{commands.__name__}.{module_info.name}")
            command_class = getattr(module, "Command", None)
            if command_class is not None:
                found[module_info.name] = command_class
        return found

    def list_commands(self):
        print("Available commands:")
        print("=" * 40)

        if not self.available_commands:
            print("No commands found.")
            return

        for name, command_class in sorted(self.available_commands.items()):
            print(f"  {name:<20} {command_class.description}")

    def run_command(self, command_name: str, args: List[str]):
        if command_name not in self.available_commands:
            print(f"Unknown command: {command_name}")
            print("Use 'change-tracking help' to see available commands.")
            sys.exit(1)

        command_instance = self.available_commands[command_name]()
        try:
            command_instance.run(args)
        except AppException as e:
            logger.debug(f"Command '{command_name}' failed", exc_info=True)
            command_instance.print_error(f"{e.error_code}: {e.message}")
            sys.exit(1)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Change tracking management tool",
        add_help=False
    )
    parser.add_argument('command', nargs='?', help='Command to run')
    args, rest = parser.parse_known_args(argv)

    cli_manager = CLIManager()

    if not args.command or args.command in ('help', '-h', '--help'):
        if rest and rest[0] in cli_manager.available_commands:
            cli_manager.available_commands[rest[0]]().help()
        else:
            print("Usage: change-tracking <command> [args...]")
            print()
            cli_manager.list_commands()
            print()
            print("Use 'change-tracking help <command>' for help on a specific command.")
        return

    cli_manager.run_command(args.command, rest)


if __name__ == "__main__":
    main()
