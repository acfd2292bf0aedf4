import re
from typing import Any, Iterable, TypeVar

from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationFailed


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

ModelT = TypeVar("ModelT")


def normalize_email(value: str) -> str:
    normalized = value.lower().strip()
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationFailed("Invalid email format")
    return normalized


def get_or_404(db: Session, model: type[ModelT], entity_id: int, entity: str) -> ModelT:
    instance = db.get(model, entity_id)
    if instance is None:
        raise NotFoundError(entity)
    return instance


def apply_changes(instance: Any, changes: dict[str, Any], *, required: Iterable[str] = ()) -> None:
    """Copy a partial update onto ``instance``.

    Blank values never overwrite a required column. On nullable columns an
    empty string clears the value.
    """
    required = set(required)
    for field, value in changes.items():
        if field in required:
            if value is None or value == "":
                continue
        elif value == "":
            value = None
        setattr(instance, field, value)
