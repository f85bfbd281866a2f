"""
Command to create the database tables.
"""

from change_tracking.core.config import get_settings
from change_tracking.infrastructure.db import DatabaseManager

from .base import BaseCommand


class Command(BaseCommand):
    description = "Create all tables on the configured database"

    def add_arguments(self, parser):
        parser.add_argument(
            '--drop',
            action='store_true',
            help='Drop existing tables first'
        )

    def handle(self, **kwargs):
        manager = DatabaseManager(get_settings())
        try:
            if kwargs.get('drop'):
                self.print_warning("Dropping existing tables...")
                manager.drop_tables()
            manager.create_tables()
        finally:
            manager.dispose()
        self.print_success(f"Tables created on {manager.database_url}")
