import json
from datetime import datetime, timedelta, timezone

from sensor_relay.models import Category
from sensor_relay.normalizer import iso_timestamp, normalize

FIXED = datetime(2024, 1, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def test_numeric_reading_becomes_envelope():
    out = normalize(Category.NUMERIC_CLIENT, "23.5", now=FIXED)
    assert out == '{"value":23.5,"timestamp":"2024-01-01T12:30:45.123Z","source":"arduino"}'


def test_envelope_value_matches_input_exactly():
    for raw in ("72.3", "0.1", "1023", " 3.14159 "):
        data = json.loads(normalize(Category.NUMERIC_CLIENT, raw))
        assert data["value"] == float(raw.strip())
        assert data["source"] == "arduino"
        # must round-trip through datetime
        datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))


def test_numeric_client_sending_json_falls_back_to_raw():
    raw = '{"status": "ok"}'
    assert normalize(Category.NUMERIC_CLIENT, raw) is raw


def test_json_and_text_pass_through_untouched():
    raw = '{ "a" :   1 }'
    assert normalize(Category.JSON_CLIENT, raw) is raw
    assert normalize(Category.TEXT_CLIENT, "hello world") == "hello world"
    assert normalize(Category.TEXT_CLIENT, b"\x00\x01") == b"\x00\x01"


def test_iso_timestamp_converts_to_utc():
    tokyo = timezone(timedelta(hours=9))
    local = datetime(2024, 1, 1, 21, 0, 0, tzinfo=tokyo)
    assert iso_timestamp(local) == "2024-01-01T12:00:00.000Z"


def test_overflowing_reading_is_forwarded_raw():
    raw = "9" * 400
    assert normalize(Category.NUMERIC_CLIENT, raw) is raw


def test_envelope_is_strict_json():
    def reject(name):
        raise ValueError(name)

    out = normalize(Category.NUMERIC_CLIENT, "1" + "0" * 300, now=FIXED)
    assert json.loads(out, parse_constant=reject)["value"] == 1e300


def test_byte_order_mark_is_trimmed():
    data = json.loads(normalize(Category.NUMERIC_CLIENT, "\ufeff512"))
    assert data["value"] == 512.0
