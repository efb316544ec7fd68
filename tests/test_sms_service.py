"""Tests for SMS templating and phone normalisation."""
import pytest

from animia_sync.services.sms_service import build_sms_message, format_phone_number, send_beneficiary_sms


@pytest.mark.parametrize("raw, expected", [
    ("9876543210", "+919876543210"),
    ("98765-43210", "+919876543210"),
    ("919876543210", "+919876543210"),
    ("+91 98765 43210", "+919876543210"),
    ("", ""),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_format_phone_number_other_country():
    assert format_phone_number("5551234567", country_code="1") == "+15551234567"


def test_registration_message_defaults():
    message = build_sms_message("registration", "Asha", {})
    assert "Your ID: N/A" in message
    assert "Doctor: Dr. Health" in message


def test_unknown_kind_falls_back():
    assert build_sms_message("other", "Asha") == "Hello Asha, this is an update from Animia health program."


def test_send_requires_phone_and_name():
    sent = []

    class Sender:
        def send(self, phone, message):
            sent.append(phone)

    assert send_beneficiary_sms(Sender(), "", "Asha", "update") is False
    assert send_beneficiary_sms(Sender(), "9876543210", "Asha", "update") is True
    assert sent == ["+919876543210"]
