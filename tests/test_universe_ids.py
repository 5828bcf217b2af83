"""
Universe Identifier Tests
=========================

Grammar: colon-delimited, at least two non-empty segments, no whitespace.
The trailing segment may be a year, a year range, ``present`` range or ``*``.
"""

import pytest

from local_time.contracts.base import InvalidUniverseIdError, UniverseId


class TestUniverseIdGrammar:

    @pytest.mark.parametrize("value", [
        "disney:mary_poppins:1964",
        "nasa:apollo11:1969",
        "ukraine:zelensky_presidency:2019-present",
        "network:disney:*",
        "personal:eye_surgery",
        "a:b:c:d",
    ])
    def test_valid_ids(self, value):
        assert UniverseId.is_valid(value)
        assert UniverseId(value).value == value

    @pytest.mark.parametrize("value", [
        "",
        "mary_poppins",
        "disney:",
        ":mary_poppins",
        "disney::1964",
        "disney:mary poppins:1964",
        "disney:mary_poppins:1964\n",
    ])
    def test_invalid_ids_raise(self, value):
        assert not UniverseId.is_valid(value)
        with pytest.raises(InvalidUniverseIdError):
            UniverseId(value)

    def test_invalid_id_is_a_value_error(self):
        with pytest.raises(ValueError, match="category:identifier"):
            UniverseId.parse("nope")

    def test_non_string_rejected(self):
        assert not UniverseId.is_valid(1964)
        with pytest.raises(InvalidUniverseIdError):
            UniverseId(1964)

    def test_parse_passes_through_existing_id(self):
        uid = UniverseId("nasa:apollo11:1969")
        assert UniverseId.parse(uid) is uid


class TestUniverseIdParts:

    def test_year_qualifier(self):
        uid = UniverseId("disney:mary_poppins:1964")
        assert uid.category == "disney"
        assert uid.identifier == "mary_poppins"
        assert uid.qualifier == "1964"
        assert str(uid) == "disney:mary_poppins:1964"

    def test_range_and_wildcard_qualifiers(self):
        assert UniverseId("ukraine:zelensky_presidency:2019-present").qualifier == "2019-present"
        assert UniverseId("wars:ww2:1939-1945").qualifier == "1939-1945"
        assert UniverseId("network:disney:*").qualifier == "*"

    def test_no_qualifier(self):
        uid = UniverseId("books:dune:first_edition")
        assert uid.qualifier is None
        assert uid.identifier == "dune:first_edition"

    def test_two_segment_id_never_has_qualifier(self):
        uid = UniverseId("year:1969")
        assert uid.qualifier is None
        assert uid.identifier == "1969"
