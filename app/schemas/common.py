from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    # Fechas sin zona (SQLite las devuelve así) se interpretan como UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Fecha de respuesta, siempre en UTC con zona explícita
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

# Límite de los enteros de inventario (columna INTEGER de 32 bits)
MAX_INT = 2**31 - 1


class CamelModel(BaseModel):
    """
    Base de los esquemas de respuesta: atributos en snake_case,
    JSON en camelCase (publishYear, totalCopies, userId...).
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class InputModel(CamelModel):
    """
    Base de los cuerpos de entrada: campos desconocidos se rechazan.
    """

    class Config:
        extra = "forbid"


class MessageResponse(BaseModel):
    success: bool = True
    message: str
