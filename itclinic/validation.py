# itclinic/validation.py

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

import pydantic

from . import schemas
from .errors import FieldError, ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)


@dataclass
class ValidationResult(Generic[M]):
    value: Optional[M] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> M:
        """Return the value or raise ``ValidationError`` with every field message."""
        if self.errors:
            raise ValidationError(self.errors)
        return self.value


def field_errors(raw: Sequence[Mapping[str, Any]], skip_prefix: Sequence[str] = ()) -> List[FieldError]:
    """Turn pydantic error dicts into ``(field, message)`` pairs, first message per field."""
    seen = set()
    out: List[FieldError] = []
    for err in raw:
        loc = [str(p) for p in err.get("loc", ())]
        if loc and loc[0] in skip_prefix:
            loc = loc[1:]
        name = ".".join(loc) or "__root__"
        if name in seen:
            continue
        seen.add(name)
        out.append((name, err.get("msg", "Invalid value")))
    return out


def validate(model: Type[M], data: Mapping[str, Any], context: Optional[dict] = None) -> ValidationResult[M]:
    try:
        return ValidationResult(value=model.model_validate(dict(data), context=context))
    except pydantic.ValidationError as exc:
        return ValidationResult(errors=field_errors(exc.errors()))


def validate_booking(data: Mapping[str, Any], today: Optional[date] = None) -> ValidationResult[schemas.BookingCreate]:
    return validate(schemas.BookingCreate, data, context={"today": today or date.today()})


def validate_profile(data: Mapping[str, Any]) -> ValidationResult[schemas.ProfileUpdate]:
    return validate(schemas.ProfileUpdate, data)


def validate_contact(data: Mapping[str, Any]) -> ValidationResult[schemas.ContactCreate]:
    return validate(schemas.ContactCreate, data)


def validate_service(data: Mapping[str, Any], partial: bool = False):
    return validate(schemas.ServiceUpdate if partial else schemas.ServiceCreate, data)


def validate_product(data: Mapping[str, Any], partial: bool = False):
    return validate(schemas.ProductUpdate if partial else schemas.ProductCreate, data)
