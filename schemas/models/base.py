"""
Shared field types and the base class for stored documents.

Documents are read through ``from_mongo`` and written as plain dicts built
by the services, so models here only ever describe what comes back from
MongoDB.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional, TypeVar

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema

from shared.datetime_utils import ensure_utc

DocT = TypeVar("DocT", bound="MongoBaseModel")


def coerce_object_id(value: Any) -> ObjectId:
    """Accept an ObjectId or its 24-char hex form."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value!r}")


class PyObjectId(ObjectId):
    """ObjectId field: hex strings accepted on input, dumped as hex."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        from_str = core_schema.chain_schema(
            [
                core_schema.str_schema(),
                core_schema.no_info_plain_validator_function(coerce_object_id),
            ]
        )
        return core_schema.json_or_python_schema(
            json_schema=from_str,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(ObjectId), from_str]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


# Aware UTC whichever tz_aware setting the client was opened with
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class MongoBaseModel(BaseModel):
    """Maps ``_id`` to ``id``; unknown keys in stored documents are ignored."""

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    @classmethod
    def from_mongo(cls: type[DocT], data: Optional[dict]) -> Optional[DocT]:
        """None in, None out, so ``find_one`` results can be passed straight through."""
        if data is None:
            return None
        return cls.model_validate(data)
