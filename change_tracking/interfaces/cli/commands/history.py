"""
Command to list the change history.
"""

from change_tracking.application.services import group_by_batch
from change_tracking.infrastructure.db import ChangeRecordRepository

from .base import BaseCommand


class Command(BaseCommand):
    description = "List recorded changes, newest first"

    def add_arguments(self, parser):
        parser.add_argument('--entity-type', help='Only changes of this entity type')
        parser.add_argument('--entity-id', type=int, help='Only changes of this entity')
        parser.add_argument('--batch', dest='batch_id', help='Only changes of this batch')
        parser.add_argument('--user-id', type=int, help='Only changes made by this user')
        parser.add_argument('--limit', type=int, default=50, help='Maximum number of records')

    def handle(self, **kwargs):
        with self.session() as session:
            records = ChangeRecordRepository(session).list_changes(
                entity_type=kwargs.get('entity_type'),
                entity_id=kwargs.get('entity_id'),
                batch_id=kwargs.get('batch_id'),
                user_id=kwargs.get('user_id'),
                limit=kwargs['limit'],
            )

            if not records:
                self.print_info("No changes found.")
                return

            for batch in group_by_batch(records):
                if not batch.is_singleton:
                    print(f"batch {batch.batch_id} ({len(batch.records)} changes)")
                for record in batch.records:
                    print(self.format_record(record, indent="  " if not batch.is_singleton else ""))

    @staticmethod
    def format_record(record, indent: str = "") -> str:
        target = f"{record.entity_type}#{record.entity_id}"
        if record.entity_name:
            target += f" ({record.entity_name})"
        line = f"{indent}[{record.id}] {record.timestamp:%Y-%m-%d %H:%M:%S} {record.action:<6} {target}"
        if record.field_name:
            line += f" {record.field_name}: {record.old_value!r} -> {record.new_value!r}"
        if not record.is_reversible:
            line += " [not reversible]"
        return line
