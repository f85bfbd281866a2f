"""
Command to roll back a change or a batch.
"""

from change_tracking.application.services import BatchCoordinator, RollbackEngine
from change_tracking.core.config import get_settings
from change_tracking.interfaces.dependencies import get_entity_registry

from .base import BaseCommand


class Command(BaseCommand):
    description = "Roll back a single change or a whole batch"

    def add_arguments(self, parser):
        target = parser.add_mutually_exclusive_group(required=True)
        target.add_argument('change_id', nargs='?', type=int, help='Change record to revert')
        target.add_argument('--batch', dest='batch_id', help='Batch to revert')
        parser.add_argument('--user-id', type=int, help='Operator performing the rollback')

    def handle(self, **kwargs):
        settings = get_settings()
        with self.session() as session:
            engine = RollbackEngine(
                session,
                get_entity_registry(),
                settings=settings.rollback,
                user_id=kwargs.get('user_id'),
            )
            if kwargs.get('batch_id'):
                result = BatchCoordinator(engine).rollback_batch_by_id(kwargs['batch_id'])
            else:
                result = engine.perform_rollback_by_id(kwargs['change_id'])

        for applied in result.applied:
            target = f"{applied.entity_type}#{applied.entity_id}"
            if applied.field_name:
                target += f".{applied.field_name}"
            self.print_info(f"  change {applied.change_id}: {applied.action.value} {target}")
        self.print_success(f"Rolled back {len(result.applied)} changes")
