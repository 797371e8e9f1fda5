"""Tests for color, timestamp and flag normalization."""

from datetime import datetime, timezone

import pytest
from hookpost.core.normalize import as_flags_variant, color_to_int, flags_to_int, to_iso8601
from hookpost.models import BinaryFlags, Color, IntegerFlags, MessageFlag, NamedFlagSet


class TestColor:
    def test_int_passes_through(self):
        assert color_to_int(0x5865F2) == 0x5865F2

    def test_rgb_converted_via_hex(self):
        assert color_to_int(Color(255, 0, 0)) == 0xFF0000
        assert color_to_int(Color(0x58, 0x65, 0xF2)) == 5793266

    def test_from_hex(self):
        assert Color.from_hex("#00ff7f") == Color(0, 255, 127)

    def test_from_hex_rejects_short(self):
        with pytest.raises(ValueError):
            Color.from_hex("fff")

    def test_channel_range_enforced(self):
        with pytest.raises(ValueError):
            Color(256, 0, 0)

    @pytest.mark.parametrize("channels", [(1.0, 0.5, 0.0), (True, 0, 0), ("ff", 0, 0)])
    def test_channel_type_enforced(self, channels):
        with pytest.raises(TypeError):
            Color(*channels)

    def test_from_floats(self):
        assert Color.from_floats(1.0, 0.5, 0.0) == Color(255, 128, 0)


class TestTimestamp:
    def test_string_untouched(self):
        assert to_iso8601("not even a date") == "not even a date"

    def test_unix_seconds(self):
        assert to_iso8601(0) == "1970-01-01T00:00:00+00:00"

    def test_unix_float(self):
        assert to_iso8601(1.5) == "1970-01-01T00:00:01.500000+00:00"

    def test_datetime(self):
        dt = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        assert to_iso8601(dt) == "2024-05-01T12:30:00+00:00"

    def test_naive_datetime_is_utc(self):
        assert to_iso8601(datetime(2024, 5, 1, 12, 30)) == "2024-05-01T12:30:00+00:00"


class TestFlags:
    def test_int_passes_through(self):
        assert flags_to_int(4) == 4

    def test_named_set(self):
        assert flags_to_int({"SUPPRESS_NOTIFICATIONS"}) == 4096

    def test_named_set_both(self):
        assert flags_to_int(["SUPPRESS_EMBEDS", "SUPPRESS_NOTIFICATIONS"]) == 4100

    def test_named_set_dedupes(self):
        assert flags_to_int(["SUPPRESS_EMBEDS", "SUPPRESS_EMBEDS"]) == 4

    def test_unknown_names_count_as_zero(self):
        assert flags_to_int(["SUPPRESS_EMBEDS", "LOUD"]) == 4

    def test_enum_members(self):
        assert flags_to_int([MessageFlag.SUPPRESS_NOTIFICATIONS]) == 4096

    def test_single_name(self):
        assert flags_to_int("SUPPRESS_EMBEDS") == 4

    def test_two_byte_buffer_little_endian(self):
        assert flags_to_int(b"\x00\x10") == 4096
        assert flags_to_int(bytearray(b"\x04\x00")) == 4

    def test_two_byte_buffer_big_endian(self):
        assert flags_to_int(b"\x10\x04", byteorder="big") == 4100

    def test_wrong_length_buffer_is_zero(self):
        assert flags_to_int(b"\x04") == 0
        assert flags_to_int(b"\x04\x00\x00") == 0

    def test_variants_resolve_themselves(self):
        assert IntegerFlags(4).to_int() == 4
        assert BinaryFlags(b"\x04\x10", "big").to_int() == 0x0410
        assert NamedFlagSet.of(["SUPPRESS_EMBEDS"]).to_int() == 4

    def test_variant_kept_as_is(self):
        variant = NamedFlagSet.of(["SUPPRESS_EMBEDS"])
        assert as_flags_variant(variant) is variant

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            as_flags_variant(True)

    def test_unsupported_type_rejected(self):
        with pytest.raises(TypeError):
            as_flags_variant(4.0)
