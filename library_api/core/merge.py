from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from library_api.core.errors import InvalidDataError

FullModel = TypeVar("FullModel", bound=BaseModel)


def _validation_message(exc: ValidationError) -> str:
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
    return "Incomplete or invalid fields after merge: " + ", ".join(fields)


def merge(patch: BaseModel, current, full_model: Type[FullModel]) -> FullModel:
    """Fill every absent field of ``patch`` from ``current``.

    Patch models normalize "unset" to ``None`` when parsed, so a single check
    covers every field type.
    """
    values = {}
    for name in full_model.model_fields:
        supplied = getattr(patch, name, None)
        values[name] = supplied if supplied is not None else getattr(current, name, None)
    try:
        return full_model(**values)
    except ValidationError as exc:
        raise InvalidDataError(_validation_message(exc)) from exc


def forward_loan_patch(patch: BaseModel, full_model: Type[FullModel]) -> FullModel:
    """Turn a loan patch into a full update without consulting the stored loan.

    Every patch field is taken as supplied: an absent return date clears it
    and an absent loan date is rejected.
    """
    try:
        return full_model(**patch.model_dump())
    except ValidationError as exc:
        raise InvalidDataError(_validation_message(exc)) from exc
