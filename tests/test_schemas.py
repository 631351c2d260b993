"""Tests for user request/response schemas."""

import pytest
from pydantic import ValidationError

from users.schemas import Address, UserCreate, UserUpdate, check_point


class TestUserCreate:
    def test_to_document_drops_unset_optionals(self):
        payload = UserCreate(name="John Doe", email="john@example.com")

        assert payload.to_document() == {"name": "John Doe", "email": "john@example.com"}

    def test_to_document_keeps_address(self):
        payload = UserCreate(
            name="Geo",
            email="geo@example.com",
            address={"coordinates": [77.1234, 28.7041]},
        )

        assert payload.to_document() == {
            "name": "Geo",
            "email": "geo@example.com",
            "address": {"coordinates": [77.1234, 28.7041]},
        }

    def test_name_required(self):
        with pytest.raises(ValidationError):
            UserCreate(email="john@example.com")

    def test_negative_age_rejected(self):
        with pytest.raises(ValidationError):
            UserCreate(name="A", email="a@example.com", age=-1)


class TestAddress:
    def test_coordinates_need_two_values(self):
        with pytest.raises(ValidationError):
            Address(coordinates=[1.0, 2.0, 3.0])

    def test_latitude_range(self):
        with pytest.raises(ValidationError) as excinfo:
            Address(coordinates=[10.0, -91.0])

        assert "latitude -91.0 is outside [-90, 90]" in str(excinfo.value)


class TestUserUpdate:
    def test_only_supplied_fields(self):
        assert UserUpdate(age=29).to_update_fields() == {"age": 29}

    def test_empty(self):
        assert UserUpdate().to_update_fields() == {}

    def test_address_flattened(self):
        update = UserUpdate.model_validate({"address": {"city": "Pune", "street": "MG Rd"}})

        assert update.to_update_fields() == {"address.city": "Pune", "address.street": "MG Rd"}

    def test_explicit_null_address_clears_it(self):
        update = UserUpdate.model_validate({"address": None})

        assert update.to_update_fields() == {"address": None}

    def test_explicit_null_age_is_kept(self):
        update = UserUpdate.model_validate({"age": None})

        assert update.to_update_fields() == {"age": None}

    @pytest.mark.parametrize("field", ["name", "email"])
    def test_required_fields_cannot_be_nulled(self, field):
        with pytest.raises(ValidationError) as excinfo:
            UserUpdate.model_validate({field: None})

        assert "must not be null" in str(excinfo.value)


def test_check_point_accepts_bounds():
    check_point(-180.0, 90.0)
    check_point(180.0, -90.0)


def test_check_point_rejects_longitude():
    with pytest.raises(ValueError, match="longitude"):
        check_point(180.5, 0.0)
