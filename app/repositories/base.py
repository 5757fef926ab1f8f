"""
Base repository class with common data access operations.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.models.base import Base, parse_uuid

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository class with common data access operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository with model and database session.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get(self, id: Any) -> Optional[ModelType]:
        """
        Get a single record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance if found, None otherwise
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_by_id(self, id: Any) -> Optional[ModelType]:
        """
        Get a single record by string or UUID ID.

        Malformed identifiers are treated as not found.
        """
        uuid_obj = parse_uuid(id)
        if uuid_obj is None:
            return None
        return self.get(uuid_obj)

    def create_from_dict(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record from dictionary.

        Args:
            obj_in: Dictionary with creation data

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj
