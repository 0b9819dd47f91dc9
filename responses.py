# responses.py
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def envelope(msg: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    """Wrap a payload in the {status, msg, data} envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"status": status_code, "msg": msg, "data": jsonable_encoder(data, by_alias=True)},
    )


class APIModel(BaseModel):
    """Base schema: reads ORM objects, serializes with camelCase keys."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
