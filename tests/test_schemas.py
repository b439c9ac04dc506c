import pytest
from pydantic import ValidationError

from app.exceptions import MissingBookingFields, MissingDeleteKey
from app.schemas import (
    ABSENCE_ID_FIELDS,
    BOOKING_ALIASES,
    AbsenceCreate,
    BookingBody,
    BookingCreate,
    EventDeleteBody,
    BookingType,
    EventPayloadCreate,
    normalize_fields,
    parse_absence_request,
    parse_booking_request,
    parse_delete_request,
)


class TestNormalizeFields:
    def test_aliases_become_canonical(self):
        data = normalize_fields({"nome": "Ana", "barbeiro": "Rui", "hora": "10:00"}, BOOKING_ALIASES)
        assert data == {"name": "Ana", "staff": "Rui", "time": "10:00"}

    def test_canonical_wins_over_alias(self):
        data = normalize_fields({"name": "Ana", "nome": "Outra"}, BOOKING_ALIASES)
        assert data == {"name": "Ana"}

    def test_blank_values_are_dropped(self):
        data = normalize_fields({"name": "", "nome": "Ana", "phone": None}, BOOKING_ALIASES)
        assert data == {"name": "Ana"}

    def test_unknown_keys_are_kept(self):
        assert normalize_fields({"durationMinutes": 30}, BOOKING_ALIASES) == {"durationMinutes": 30}


class TestParseBookingRequest:
    def test_simple_fields(self, booking_payload):
        request = parse_booking_request(booking_payload)

        assert isinstance(request, BookingCreate)
        assert request.booking_type == BookingType.individual

    def test_complete_payload(self):
        request = parse_booking_request(
            {"title": "T", "note": "Staff: X", "start": {"date": "2025-06-10"}, "end": {"date": "2025-06-11"}}
        )
        assert isinstance(request, EventPayloadCreate)

    def test_tag_aliases(self, booking_payload):
        assert parse_booking_request({**booking_payload, "bookingId": "b1"}).booking_tag == "b1"
        assert parse_booking_request({**booking_payload, "correlationId": 7}).booking_tag == "7"

    def test_unknown_booking_type_is_rejected(self, booking_payload):
        with pytest.raises(MissingBookingFields):
            parse_booking_request({**booking_payload, "bookingType": "group"})

    def test_none_payload(self):
        with pytest.raises(MissingBookingFields):
            parse_booking_request(None)


class TestParseAbsenceRequest:
    def test_canonical(self):
        request = parse_absence_request({"staffName": "Rui", "startDate": "2025-06-10", "endDate": "2025-06-12"})
        assert request.staff_name == "Rui"
        assert request.end_date == "2025-06-12"

    def test_legacy(self):
        request = parse_absence_request({"barbeiro": "Rui", "data": "2025-06-10", "hora": "12:00"})
        assert request.start_date == "2025-06-10"
        assert request.time == "12:00"

    def test_missing(self):
        with pytest.raises(MissingBookingFields):
            parse_absence_request({"staffName": "Rui"})


class TestParseDeleteRequest:
    def test_single_id(self):
        assert parse_delete_request({"id": "abc"}).ids == ["abc"]

    def test_legacy_alias(self):
        assert parse_delete_request({"iddamarcacao": "abc"}).ids == ["abc"]

    def test_ids_are_collected_and_deduplicated(self):
        request = parse_delete_request({"id": "a", "iddamarcacao": "a", "eventId": "b", "ids": ["b", "c", ""]})
        assert request.ids == ["a", "b", "c"]

    def test_tag_only(self):
        request = parse_delete_request({"bookingTag": "t1"})
        assert request.ids == []
        assert request.booking_tag == "t1"

    def test_booking_id_is_a_tag(self):
        assert parse_delete_request({"bookingId": "t1"}).booking_tag == "t1"

    def test_absence_alias(self):
        assert parse_delete_request({"idAusencia": "x"}, ABSENCE_ID_FIELDS).ids == ["x"]
        # idAusencia is not a booking id
        with pytest.raises(MissingDeleteKey):
            parse_delete_request({"idAusencia": "x"})

    @pytest.mark.parametrize("payload", [{}, None, {"id": ""}, {"ids": []}, {"id": {"nested": 1}}])
    def test_missing_key(self, payload):
        with pytest.raises(MissingDeleteKey):
            parse_delete_request(payload)


class TestRequestBodies:
    def test_models_accept_legacy_names(self):
        absence = AbsenceCreate.model_validate({"barbeiro": "Rui", "dataInicio": "2025-06-10", "dataFim": "2025-06-11"})

        assert absence.staff_name == "Rui"
        assert absence.end_date == "2025-06-11"

    def test_body_picks_simple_request(self, booking_payload):
        assert isinstance(BookingBody.model_validate(booking_payload).root, BookingCreate)

    def test_body_prefers_complete_payload(self, booking_payload):
        body = BookingBody.model_validate(
            {**booking_payload, "summary": "T", "description": "N", "start": "s", "end": "e"}
        )
        assert isinstance(body.root, EventPayloadCreate)
        assert body.root.title == "T"

    def test_body_without_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            BookingBody.model_validate({"name": "Ana"})

        assert exc_info.value.errors()[0]["msg"] == MissingBookingFields.default_message

    def test_delete_body_feeds_the_delete_parser(self):
        body = EventDeleteBody.model_validate({"iddamarcacao": 42, "correlationId": " bk-1 "})

        request = parse_delete_request(body.model_dump(exclude_none=True))

        assert request.ids == ["42"]
        assert request.booking_tag == "bk-1"
