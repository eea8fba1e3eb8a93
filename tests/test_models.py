"""
Tests for data models: TTL policy, JsonCodec, Record, TableName and Stats.
"""

import math
from datetime import timedelta

import pytest

from auxdata.models.codec import MAX_VALUE_SIZE, JsonCodec
from auxdata.models.exceptions import (
    DecodingError,
    EncodingError,
    InvalidArgumentError,
    ValueTooLargeError,
)
from auxdata.models.record import Record, Stats, TableName
from auxdata.models.ttl import (
    MAX_EXPIRY,
    NEVER_EXPIRES,
    expiry_instant,
    is_expired,
    normalize_ttl,
)

NOW = 1_700_000_000


class TestNormalizeTTL:
    """Tests for normalize_ttl."""

    def test_timedelta_past_calendar_end(self):
        with pytest.raises(InvalidArgumentError):
            normalize_ttl(timedelta.max, NOW)

    def test_timedelta_before_calendar_start_expires_immediately(self):
        assert normalize_ttl(timedelta.min, NOW) == 0

    def test_none_never_expires(self):
        assert normalize_ttl(None, NOW) is None

    def test_int_passes_through(self):
        assert normalize_ttl(60, NOW) == 60
        assert normalize_ttl(0, NOW) == 0
        assert normalize_ttl(-5, NOW) == -5

    def test_timedelta_resolved_to_seconds(self):
        assert normalize_ttl(timedelta(minutes=2), NOW) == 120
        assert normalize_ttl(timedelta(days=1), NOW) == 86400

    def test_negative_timedelta_clamps_to_zero(self):
        assert normalize_ttl(timedelta(seconds=-30), NOW) == 0

    def test_timedelta_without_reference_uses_current_time(self):
        assert normalize_ttl(timedelta(seconds=10)) == 10

    def test_bool_rejected(self):
        with pytest.raises(InvalidArgumentError):
            normalize_ttl(True, NOW)

    def test_unsupported_type_rejected(self):
        with pytest.raises(InvalidArgumentError):
            normalize_ttl("60", NOW)
        with pytest.raises(InvalidArgumentError):
            normalize_ttl(1.5, NOW)


class TestExpiryInstant:
    """Tests for expiry_instant and is_expired."""

    def test_instant_past_column_range(self):
        with pytest.raises(InvalidArgumentError):
            expiry_instant(10**19, NOW)
        assert expiry_instant(MAX_EXPIRY - NOW, NOW) == MAX_EXPIRY

    def test_none_and_negative_map_to_sentinel(self):
        assert expiry_instant(None, NOW) == NEVER_EXPIRES
        assert expiry_instant(-1, NOW) == NEVER_EXPIRES
        assert expiry_instant(-100, NOW) == NEVER_EXPIRES

    def test_zero_maps_to_now(self):
        assert expiry_instant(0, NOW) == NOW

    def test_positive_adds_to_now(self):
        assert expiry_instant(30, NOW) == NOW + 30

    def test_sentinel_never_expired(self):
        assert not is_expired(NEVER_EXPIRES, NOW)
        assert not is_expired(NEVER_EXPIRES, 10**12)

    def test_expired_only_strictly_after_instant(self):
        assert not is_expired(NOW, NOW)
        assert is_expired(NOW, NOW + 1)
        assert not is_expired(NOW + 1, NOW)


class TestJsonCodec:
    """Tests for JsonCodec."""

    def test_lone_surrogate_rejected(self):
        codec = JsonCodec()
        with pytest.raises(EncodingError):
            codec.encode("\ud800")
        with pytest.raises(EncodingError):
            codec.encode({"\udfff": 1})

    def test_round_trip(self, sample_values):
        """Every supported shape decodes back to an equal value."""
        codec = JsonCodec()
        for value in sample_values.values():
            assert codec.decode(codec.encode(value)) == value

    def test_tuple_decodes_as_list(self):
        codec = JsonCodec()
        assert codec.decode(codec.encode((1, 2, 3))) == [1, 2, 3]

    def test_unicode_kept_readable(self):
        codec = JsonCodec()
        assert codec.encode("日本") == '"日本"'

    def test_decode_accepts_bytes(self):
        assert JsonCodec().decode(b'{"a": 1}') == {"a": 1}

    def test_unsupported_types_rejected(self):
        codec = JsonCodec()
        for value in (object(), {1, 2}, b"raw", lambda: None):
            with pytest.raises(EncodingError):
                codec.encode(value)

    def test_nested_unsupported_type_rejected(self):
        with pytest.raises(EncodingError):
            JsonCodec().encode({"ok": [1, 2, {"bad": object()}]})

    def test_non_string_mapping_keys_rejected(self):
        with pytest.raises(EncodingError):
            JsonCodec().encode({1: "one"})

    def test_non_finite_floats_rejected(self):
        codec = JsonCodec()
        for value in (math.nan, math.inf, -math.inf):
            with pytest.raises(EncodingError):
                codec.encode(value)

    def test_size_limit(self):
        codec = JsonCodec(max_size=10)
        assert codec.encode("12345678") == '"12345678"'
        with pytest.raises(ValueTooLargeError) as exc_info:
            codec.encode("123456789")
        assert exc_info.value.size == 11
        assert exc_info.value.limit == 10

    def test_size_limit_counts_utf8_bytes(self):
        codec = JsonCodec(max_size=7)
        with pytest.raises(ValueTooLargeError):
            codec.encode("日本")  # 2 quotes + 6 bytes

    def test_default_limit(self):
        assert JsonCodec().max_size == MAX_VALUE_SIZE == 10_485_760

    def test_invalid_max_size(self):
        with pytest.raises(ValueError):
            JsonCodec(max_size=0)

    def test_malformed_input(self):
        codec = JsonCodec()
        with pytest.raises(DecodingError):
            codec.decode("{not json")
        with pytest.raises(DecodingError):
            codec.decode("")


class TestTableName:
    """Tests for TableName sanitization."""

    def test_safe_name_unchanged(self):
        assert TableName.sanitize("settings").name == "settings"
        assert TableName.sanitize("Cache_2").name == "Cache_2"

    def test_unsafe_characters_replaced(self):
        assert TableName.sanitize("my-table; DROP").name == "my_table__DROP"
        assert TableName.sanitize("a.b").name == "a_b"

    def test_leading_digit_prefixed(self):
        assert TableName.sanitize("1abc").name == "_1abc"

    def test_empty_name_prefixed(self):
        assert TableName.sanitize("").name == "_"

    def test_index_name(self):
        table = TableName.sanitize("settings")
        assert table.index_name == "idx_settings_exp"
        assert str(table) == "settings"


class TestRecord:
    """Tests for Record."""

    def test_defaults_to_permanent(self):
        record = Record(key="k", value="1")
        assert record.is_permanent()
        assert not record.is_expired(NOW)

    def test_expiry(self):
        record = Record(key="k", value="1", exp=NOW)
        assert not record.is_permanent()
        assert not record.is_expired(NOW)
        assert record.is_expired(NOW + 1)


class TestStats:
    """Tests for Stats."""

    def test_as_dict(self):
        stats = Stats(total=5, active=3, expired=2, size=4096)
        assert stats.as_dict() == {"total": 5, "active": 3, "expired": 2, "size": 4096}
