import logging
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any, Union, Iterable

from sqlmodel import SQLModel, Session
from sqlalchemy.exc import SQLAlchemyError

from ....core.exceptions import DatabaseError, NotFoundError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class with common read and insert operations.

    Example usage::

        repo = BaseRepository(ChangeRecord, session)
        record = repo.get(12)
    """

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    def create(self, obj_in: Union[ModelType, Dict[str, Any]]) -> ModelType:
        """
        Create a new record.

        Args:
            obj_in: Model instance or dictionary with field values

        Returns:
            Created model instance

        Raises:
            DatabaseError: If creation fails
        """
        try:
            if isinstance(obj_in, dict):
                db_obj = self.model.model_validate(obj_in)
            else:
                db_obj = obj_in

            self.session.add(db_obj)
            self.session.flush()
            self.session.refresh(db_obj)

            logger.debug(f"Created {self.model.__name__} with ID: {db_obj.id}")
            return db_obj

        except SQLAlchemyError as e:
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to create {self.model.__name__}: {str(e)}", operation="create")

    def create_many(self, objs_in: Iterable[Union[ModelType, Dict[str, Any]]]) -> List[ModelType]:
        """Create several records in the current transaction."""
        return [self.create(obj_in) for obj_in in objs_in]

    def get(self, id: Any) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        try:
            return self.session.get(self.model, id)

        except SQLAlchemyError as e:
            logger.error(f"Failed to get {self.model.__name__} by ID {id}: {e}")
            raise DatabaseError(f"Failed to get {self.model.__name__}: {str(e)}", operation="get")

    def get_or_404(self, id: Any) -> ModelType:
        """
        Get a record by ID or raise 404 error.

        Raises:
            NotFoundError: If record not found
        """
        obj = self.get(id)
        if obj is None:
            raise NotFoundError(self.model.__name__, id)
        return obj
