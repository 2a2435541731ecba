"""Tests for the capture codecs and safe previews."""

from __future__ import annotations

import base64
import json
import pickle
import threading
from datetime import datetime
from decimal import Decimal
from fractions import Fraction

import pytest

from backgrounder.capture.models import Capture, WorkItem
from backgrounder.capture.serializer import (
    REDACTED_PLACEHOLDER,
    decode,
    dumps,
    encode,
    ensure_serializable,
    loads,
    make_capture,
    preview_capture,
    redact_value,
    safe_serialize,
)
from backgrounder.core.errors import CaptureDecodeError, CaptureError


class Invoice:
    def __init__(self, number: int) -> None:
        self.number = number


# -----------------------------------------------------------------------
# make_capture
# -----------------------------------------------------------------------

class TestMakeCapture:
    def test_builds_capture(self):
        capture = make_capture("mail:send", [1, 2], {"copy_to": "ops"}, owner="acct")

        assert capture.task == "mail:send"
        assert capture.work.args == (1, 2)
        assert capture.values == {"copy_to": "ops"}
        assert capture.owner == "acct"

    def test_rejects_unserializable_argument(self):
        with pytest.raises(CaptureError, match="Argument 0"):
            make_capture("t", [threading.Lock()])

    def test_rejects_unserializable_value(self):
        with pytest.raises(CaptureError, match="'lock'"):
            make_capture("t", values={"lock": threading.Lock()})

    def test_rejects_unserializable_owner(self):
        with pytest.raises(CaptureError, match="Owner"):
            make_capture("t", owner=threading.Lock())

    def test_ensure_serializable_accepts_plain_data(self):
        ensure_serializable({"a": [1, 2, (3, 4)], "b": Decimal("1.5")})


# -----------------------------------------------------------------------
# Lossless codec
# -----------------------------------------------------------------------

class TestBinaryCodec:
    def test_round_trip_keeps_objects(self):
        capture = make_capture(
            "billing:charge",
            [Fraction(1, 3), datetime(2024, 5, 1, 9, 0)],
            {"amount": Decimal("9.99")},
            owner={"account": 7},
        )

        restored = loads(dumps(capture))

        assert restored == capture
        assert restored.work.args[0] == Fraction(1, 3)
        assert isinstance(restored.values["amount"], Decimal)

    def test_garbage_is_a_decode_error(self):
        with pytest.raises(CaptureDecodeError):
            loads(b"definitely not a pickle")

    def test_truncated_payload_is_a_decode_error(self):
        data = dumps(make_capture("t", [1]))
        with pytest.raises(CaptureDecodeError):
            loads(data[: len(data) // 2])

    def test_other_pickles_are_rejected(self):
        with pytest.raises(CaptureDecodeError, match="envelope"):
            loads(pickle.dumps(["just", "a", "list"]))

    def test_unknown_format_is_rejected(self):
        data = pickle.dumps({"format": 99, "capture": {}})
        with pytest.raises(CaptureDecodeError, match="format"):
            loads(data)

    def test_incomplete_envelope_is_rejected(self):
        data = pickle.dumps({"format": 1, "capture": {"values": {}}})
        with pytest.raises(CaptureDecodeError, match="incomplete"):
            loads(data)

    @pytest.mark.parametrize("body", [None, ["work"], "capture"])
    def test_envelope_without_capture_mapping_is_rejected(self, body):
        data = pickle.dumps({"format": 1, "capture": body})
        with pytest.raises(CaptureDecodeError, match="does not hold a capture"):
            loads(data)


class TestTextCodec:
    def test_round_trip(self):
        capture = make_capture("t", [1, "two"], {"three": 3})
        assert decode(encode(capture)) == capture

    def test_text_is_command_line_safe(self):
        text = encode(make_capture("t", ["a/b+c" * 20]))
        assert all(ch.isalnum() or ch in "-_=" for ch in text)

    def test_surrounding_whitespace_is_ignored(self):
        capture = make_capture("t", [1])
        assert decode(f"  {encode(capture)}\n") == capture

    def test_invalid_base64_is_a_decode_error(self):
        with pytest.raises(CaptureDecodeError):
            decode("!!! not base64 !!!")

    def test_valid_base64_of_garbage_is_a_decode_error(self):
        with pytest.raises(CaptureDecodeError):
            decode(base64.urlsafe_b64encode(b"garbage").decode())


# -----------------------------------------------------------------------
# Safe previews
# -----------------------------------------------------------------------

class TestRedaction:
    def test_sensitive_keys_are_redacted(self):
        redacted = redact_value({"password": "hunter2", "api_key": "abc", "user": "ann"})

        assert redacted["password"] == REDACTED_PLACEHOLDER
        assert redacted["api_key"] == REDACTED_PLACEHOLDER
        assert redacted["user"] == "ann"

    def test_nested_values_are_redacted(self):
        redacted = redact_value({"outer": {"token": "t0k3n"}, "items": [{"secret": 1}]})

        assert redacted["outer"]["token"] == REDACTED_PLACEHOLDER
        assert redacted["items"][0]["secret"] == REDACTED_PLACEHOLDER


class TestSafeSerialize:
    def test_non_json_types_are_converted(self):
        data = json.loads(safe_serialize({"when": datetime(2024, 1, 2, 3, 4, 5), "amount": Decimal("1.50")}))

        assert data["when"] == "2024-01-02T03:04:05"
        assert data["amount"] == 1.5

    def test_arbitrary_objects_use_repr(self):
        assert "Invoice" in safe_serialize(Invoice(3))

    def test_truncation(self):
        result = safe_serialize("x" * 1000, max_bytes=50)
        assert result.endswith('"<truncated>"')
        assert len(result) < 100


class TestPreviewCapture:
    def test_preview_is_json_safe_and_redacted(self):
        capture = Capture(
            WorkItem("accounts:login", ("ann",)),
            values={"password": "hunter2", "remember": True},
        )
        preview = preview_capture(capture)

        assert preview["task"] == "accounts:login"
        assert preview["id"] == capture.id
        assert json.loads(preview["args"]) == ["ann"]
        assert json.loads(preview["values"]) == {"password": REDACTED_PLACEHOLDER, "remember": True}
        assert preview["owner"] is None
        json.dumps(preview)
