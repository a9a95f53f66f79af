from typing import Type, TypeVar
from pydantic import BaseModel, ValidationError as PydanticValidationError
from ccafk.exceptions import ValidationError

__all__ = ["validate_data"]

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_data(schema: Type[SchemaT], data: dict) -> SchemaT:
    try:
        return schema.model_validate(data)
    except (PydanticValidationError, ValueError) as e:
        errors = _format_errors(e, schema)
        raise ValidationError(errors) from e


def _format_errors(e: Exception, schema: Type[BaseModel]) -> str:
    if isinstance(e, PydanticValidationError):
        errors = []

        for err in e.errors():
            field_id = str(err["loc"][0]) if err["loc"] else None

            if field_id:
                field = schema.model_fields.get(field_id, None)
                title = field.title or field_id if field else field_id

                errors.append(f"{title}: {err['msg']}")
            else:
                errors.append(err["msg"])
    else:
        errors = [str(e)]

    return ", ".join(errors)
