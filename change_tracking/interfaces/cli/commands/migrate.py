"""
Command for database migrations.
"""

from pathlib import Path

from alembic import command
from alembic.config import Config

from change_tracking.core.config import get_settings

from .base import BaseCommand


class Command(BaseCommand):
    description = "Run database migrations"

    def add_arguments(self, parser):
        parser.add_argument(
            'revision',
            nargs='?',
            default='head',
            help='Target revision (default: head)'
        )
        parser.add_argument(
            '--config',
            default='alembic.ini',
            help='Path to alembic.ini'
        )
        parser.add_argument(
            '--check',
            action='store_true',
            help='Show the current revision instead of upgrading'
        )

    def handle(self, **kwargs):
        config_path = Path(kwargs['config'])
        alembic_cfg = Config(str(config_path))
        alembic_cfg.set_main_option("sqlalchemy.url", get_settings().database_url)

        if kwargs.get('check'):
            command.current(alembic_cfg, verbose=True)
            return

        self.print_info(f"Upgrading database to {kwargs['revision']}...")
        command.upgrade(alembic_cfg, kwargs['revision'])
        self.print_success("Migrations completed successfully!")
