"""Unit tests for the MongoDB document models."""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from schemas.models.base import PyObjectId, parse_object_id
from schemas.models.otp import OtpChallengeDoc, OtpPurpose, OtpState
from schemas.models.profile import (
    STAYING_FIELDS,
    ProfileDoc,
    boarded_profile_fields,
    offboarded_profile_fields,
)
from schemas.models.tenancy import TenancyDoc

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestObjectIds:
    def test_parse_valid(self):
        oid = ObjectId()
        assert parse_object_id(str(oid)) == oid

    @pytest.mark.parametrize("value", ["", "xyz", "507f1f77bcf86cd79943901"])
    def test_parse_invalid(self, value):
        assert parse_object_id(value) is None

    def test_pyobjectid_rejects_garbage(self):
        with pytest.raises(ValueError):
            PyObjectId._validate("nope")

    def test_pyobjectid_accepts_hex_string(self):
        oid = ObjectId()
        assert PyObjectId._validate(str(oid)) == oid


class TestMongoBaseModel:
    def _tenancy(self, **overrides):
        base = dict(
            user_id="U1",
            profile_id="profile_1",
            property_id="prop_1",
            property_name="Hubode Koramangala",
            occupancy_name="Double",
            tier_key="tier_a",
            tier_name="Premium",
            rent_amount=15000,
            onboarded_at=NOW,
        )
        base.update(overrides)
        return TenancyDoc(**base)

    def test_unset_id_is_left_to_mongo(self):
        assert "_id" not in self._tenancy().to_mongo()

    def test_set_id_is_dumped_as_object_id(self):
        oid = ObjectId()
        assert self._tenancy(_id=oid).to_mongo()["_id"] == oid

    def test_from_mongo_none(self):
        assert TenancyDoc.from_mongo(None) is None


class TestOtpChallengeDoc:
    def _doc(self, **overrides):
        base = dict(
            user_id="U1",
            purpose=OtpPurpose.LOGIN,
            code_hash="a" * 64,
            created_at=NOW,
            expires_at=NOW + timedelta(minutes=5),
        )
        base.update(overrides)
        return OtpChallengeDoc(**base)

    def test_states(self):
        doc = self._doc()
        assert doc.state(NOW) is OtpState.ISSUED
        assert doc.state(NOW + timedelta(minutes=5)) is OtpState.ISSUED
        assert doc.state(NOW + timedelta(minutes=5, seconds=1)) is OtpState.EXPIRED
        assert self._doc(used=True).state(NOW) is OtpState.USED

    def test_naive_now_treated_as_utc(self):
        naive = datetime(2024, 6, 1, 12, 6)
        assert self._doc().state(naive) is OtpState.EXPIRED

    def test_to_mongo(self):
        data = self._doc().to_mongo()
        assert "_id" not in data
        assert data["purpose"] == "login"
        assert data["used"] is False
        assert "code" not in data

    def test_purpose_parsed_from_wire_value(self):
        doc = OtpChallengeDoc.from_mongo(
            {**self._doc().to_mongo(), "_id": ObjectId(), "purpose": "email-change"}
        )
        assert doc.purpose is OtpPurpose.EMAIL_CHANGE
        assert doc.purpose.requires_bound_email


class TestProfileShapes:
    def test_boarded_fields(self):
        assert boarded_profile_fields("Hubode", "Double", "Premium", 15000) == {
            "is_boarded": True,
            "staying_property_name": "Hubode",
            "staying_room_type": "Double",
            "staying_room_tier": "Premium",
            "staying_rent": 15000,
        }

    def test_offboarded_fields_clear_every_staying_field(self):
        fields = offboarded_profile_fields()
        assert fields["is_boarded"] is False
        assert all(fields[name] is None for name in STAYING_FIELDS)

    def test_offboarded_shape(self):
        profile = ProfileDoc(_id="p1", user_id="U1")
        assert profile.is_offboarded_shape
        boarded = profile.model_copy(update=boarded_profile_fields("H", "D", "P", 1))
        assert not boarded.is_offboarded_shape
        stale = profile.model_copy(update={"staying_rent": 100})
        assert not stale.is_offboarded_shape


class TestTenancyDoc:
    def test_rent_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            TenancyDoc(
                user_id="U1",
                profile_id="p1",
                property_id="prop",
                property_name="H",
                occupancy_name="D",
                tier_key="t",
                tier_name="P",
                rent_amount=0,
                onboarded_at=NOW,
            )
