"""
User API schemas (request/response models).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0


def check_point(longitude: float, latitude: float) -> None:
    if not MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
        raise ValueError(f"longitude {longitude} is outside [-180, 180]")
    if not MIN_LATITUDE <= latitude <= MAX_LATITUDE:
        raise ValueError(f"latitude {latitude} is outside [-90, 90]")


class Address(BaseModel):
    street: str | None = None
    city: str | None = None
    # [longitude, latitude], same order as GeoJSON.
    coordinates: list[float] | None = Field(default=None, min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def _coordinates_in_range(cls, value: list[float] | None) -> list[float] | None:
        if value is not None:
            check_point(value[0], value[1])
        return value


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    age: int | None = Field(default=None, ge=0)
    address: Address | None = None

    def to_document(self) -> dict[str, Any]:
        # Unset optionals are not stored at all.
        return self.model_dump(exclude_none=True)


class UserUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are written.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: str | None = Field(default=None, min_length=3, max_length=320)
    age: int | None = Field(default=None, ge=0)
    address: Address | None = None

    @field_validator("name", "email")
    @classmethod
    def _required_fields_not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        return value

    def to_update_fields(self) -> dict[str, Any]:
        """
        Flatten the supplied fields into dotted paths for a `$set`.

        `{"address": {"city": "Pune"}}` becomes `{"address.city": "Pune"}` so
        the other address fields survive the update.
        """
        fields: dict[str, Any] = {}
        for key in self.model_fields_set:
            if key == "address" and self.address is not None:
                for sub_key in self.address.model_fields_set:
                    fields[f"address.{sub_key}"] = getattr(self.address, sub_key)
                continue
            fields[key] = getattr(self, key)
        return fields


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    age: int | None = None
    address: Address | None = None


class MessageResponse(BaseModel):
    message: str


class AgeStatsResponse(BaseModel):
    average_age: float | None
    count: int
