"""
Base Service Class with Enhanced Error Handling
"""

import logging
from typing import Any, Dict
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from app.core.exceptions import (
    DatabaseError,
    ResourceNotFoundError,
    ResourceAlreadyExistsError,
    ValidationError
)
from app.core.validators import validate_uuid

logger = logging.getLogger(__name__)


class BaseService:
    """Base service class with common error handling patterns."""

    def __init__(self, db: Session):
        self.db = db

    def safe_commit(self, error_message: str = "Database operation failed") -> bool:
        """Safely commit database transaction with error handling."""
        try:
            self.db.commit()
            return True
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error during commit: {str(e)}")
            raise ResourceAlreadyExistsError(
                resource_type="Resource",
                error_data={"original_error": str(e.orig)}
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during commit: {str(e)}")
            raise DatabaseError(
                detail=error_message,
                error_data={"original_error": str(e)}
            )

    def get_or_404(self, model_class, resource_id, resource_type: str = None):
        """Get resource by ID or raise 404 error. Malformed IDs are a 400."""
        resource_type = resource_type or model_class.__name__
        parsed_id = validate_uuid(resource_id, f"{resource_type.lower()}_id")

        try:
            resource = self.db.get(model_class, parsed_id)
        except SQLAlchemyError as e:
            logger.error(f"Database error in get_or_404: {str(e)}")
            raise DatabaseError(
                detail=f"Error retrieving {resource_type}",
                error_data={"resource_id": str(resource_id), "original_error": str(e)}
            )

        if not resource:
            raise ResourceNotFoundError(resource_type=resource_type, resource_id=str(resource_id))

        return resource

    def check_unique_constraint(
        self,
        model_class,
        field_name: str,
        field_value: Any,
        resource_type: str = None,
        exclude_id=None
    ):
        """Check if a field value is unique."""
        query = self.db.query(model_class).filter(
            getattr(model_class, field_name) == field_value
        )

        # Exclude current record if updating
        if exclude_id:
            query = query.filter(model_class.id != exclude_id)

        if query.first():
            raise ResourceAlreadyExistsError(
                resource_type=resource_type or model_class.__name__,
                field=field_name,
                value=str(field_value)
            )

    def validate_required_fields(self, data: Dict[str, Any], required_fields: list):
        """Validate that required fields are present and not empty."""
        missing_fields = []

        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing_fields.append(field)

        if missing_fields:
            raise ValidationError(
                detail=f"Missing required fields: {', '.join(missing_fields)}",
                field=missing_fields[0],
                error_data={"missing_fields": missing_fields}
            )

    def paginate_query(self, query, skip: int = 0, limit: int = 100):
        """Apply pagination to query with validation."""
        if skip < 0:
            raise ValidationError(
                detail="Skip parameter cannot be negative",
                field="skip",
                value=skip
            )

        if limit <= 0 or limit > 1000:
            raise ValidationError(
                detail="Limit parameter must be between 1 and 1000",
                field="limit",
                value=limit
            )

        return query.offset(skip).limit(limit)

    def log_service_action(
        self,
        action: str,
        resource_type: str = None,
        resource_id: str = None,
        extra_data: Dict[str, Any] = None
    ):
        """Log service actions for auditing."""
        log_data = {
            "action": action,
            "service": self.__class__.__name__
        }

        if resource_type:
            log_data["resource_type"] = resource_type
        if resource_id:
            log_data["resource_id"] = resource_id
        if extra_data:
            log_data.update(extra_data)

        logger.info(f"Service action: {action}", extra=log_data)
