"""
Entity type registry.

Maps an entity type tag ("client", "contract", ...) to the collection handle
the rollback engine writes through. The table is declared explicitly and is
immutable once built; an unregistered tag is an error, never a default.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Type, Union

from pydantic import TypeAdapter
from sqlmodel import Session, SQLModel

from ...core.enums import EntityType
from ...core.exceptions import MissingField, UnknownEntityType
from .models import Client, Contract, Service, LicensePool, HardwareAsset

logger = logging.getLogger(__name__)

EntityTag = Union[EntityType, str]


class SqlCollection:
    """
    Row access for one table, keyed by its ``id`` primary key.

    Handles hold no session or connection state, so one instance is shared by
    every caller; each operation runs in the session it is given.
    """

    def __init__(self, entity_type: str, model: Type[SQLModel]):
        self.entity_type = entity_type
        self.model = model

    def __repr__(self) -> str:
        return f"SqlCollection({self.entity_type!r}, {self.model.__name__})"

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def get(self, session: Session, entity_id: Any) -> Optional[SQLModel]:
        return session.get(self.model, entity_id)

    def exists(self, session: Session, entity_id: Any) -> bool:
        return self.get(session, entity_id) is not None

    def insert(self, session: Session, row: Mapping[str, Any]) -> SQLModel:
        """Insert a row with exactly the given column values."""
        obj = self.model.model_validate(dict(row))
        session.add(obj)
        session.flush()
        return obj

    def delete_by_id(self, session: Session, entity_id: Any) -> bool:
        obj = self.get(session, entity_id)
        if obj is None:
            return False
        session.delete(obj)
        session.flush()
        return True

    def has_field(self, field: str) -> bool:
        return field in self.model.model_fields

    def coerce(self, field: str, value: Any) -> Any:
        """Convert a JSON-stored value to the column's Python type."""
        if not self.has_field(field):
            raise MissingField(f"Field '{field}' does not exist on {self.entity_type}", field=field)
        annotation = self.model.model_fields[field].annotation
        return TypeAdapter(annotation).validate_python(value)

    def update_field(self, session: Session, entity_id: Any, field: str, value: Any) -> bool:
        """Set a single column. Returns False when the row does not exist."""
        coerced = self.coerce(field, value)
        obj = self.get(session, entity_id)
        if obj is None:
            return False
        setattr(obj, field, coerced)
        session.add(obj)
        session.flush()
        return True


class EntityTypeRegistry:
    """Read-only lookup from entity type tag to ``SqlCollection``."""

    def __init__(self, mapping: Mapping[EntityTag, Type[SQLModel]]):
        collections: Dict[str, SqlCollection] = {}
        for tag, model in mapping.items():
            key = self._key(tag)
            collections[key] = SqlCollection(key, model)
        self._collections = MappingProxyType(collections)

    @staticmethod
    def _key(entity_type: EntityTag) -> str:
        if isinstance(entity_type, EntityType):
            return entity_type.value
        return str(entity_type)

    def resolve(self, entity_type: EntityTag) -> SqlCollection:
        """
        Return the collection handle for an entity type.

        Raises:
            UnknownEntityType: If the tag is not registered
        """
        collection = self._collections.get(self._key(entity_type))
        if collection is None:
            raise UnknownEntityType(entity_type)
        return collection

    def supported_types(self) -> Iterable[str]:
        return tuple(self._collections)

    def __contains__(self, entity_type: object) -> bool:
        if not isinstance(entity_type, (str, EntityType)):
            return False
        return self._key(entity_type) in self._collections

    def __len__(self) -> int:
        return len(self._collections)


DEFAULT_ENTITY_MODELS: Mapping[EntityType, Type[SQLModel]] = MappingProxyType({
    EntityType.CLIENT: Client,
    EntityType.CONTRACT: Contract,
    EntityType.SERVICE: Service,
    EntityType.LICENSE_POOL: LicensePool,
    EntityType.HARDWARE_ASSET: HardwareAsset,
})


def build_default_registry() -> EntityTypeRegistry:
    """Registry of every business entity type shipped with the platform."""
    registry = EntityTypeRegistry(DEFAULT_ENTITY_MODELS)
    logger.debug(f"Entity type registry built: {', '.join(registry.supported_types())}")
    return registry
