from __future__ import annotations

import pytest

from marketledger.domain.events import (
    MalformedEventError,
    normalize_address,
    normalize_flag,
    normalize_uint,
)
from marketledger.domain.model import ZERO_ADDRESS, EventKey, EventKind
from tests.helpers.events import ALICE, HOUSE, make_event, tx


def test_normalize_address_lowercases_and_accepts_bytes() -> None:
    assert normalize_address("  0xABCDEF0000000000000000000000000000000001 ") == (
        "0xabcdef0000000000000000000000000000000001"
    )
    assert normalize_address(bytes.fromhex("00" * 19 + "c1")) == ALICE


@pytest.mark.parametrize("value", ["0x1234", "abcdef0000000000000000000000000000000001", ""])
def test_normalize_address_rejects_bad_strings(value: str) -> None:
    with pytest.raises(ValueError, match="Invalid address"):
        normalize_address(value)


def test_normalize_address_rejects_non_strings() -> None:
    with pytest.raises(TypeError):
        normalize_address(42)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(7, 7), ("42", 42), ("0x10", 16), (" 0XFF ", 255), (2**255, 2**255)],
)
def test_normalize_uint_accepts_ints_and_strings(value: object, expected: int) -> None:
    assert normalize_uint(value) == expected


def test_normalize_uint_rejects_negatives_and_bools() -> None:
    with pytest.raises(ValueError, match="unsigned"):
        normalize_uint(-1)
    with pytest.raises(TypeError):
        normalize_uint(True)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, True), (0, False), (1, True), ("yes", True), ("FALSE", False)],
)
def test_normalize_flag(value: object, expected: bool) -> None:
    assert normalize_flag(value) is expected


def test_normalize_flag_rejects_other_values() -> None:
    with pytest.raises(ValueError, match="boolean"):
        normalize_flag(2)


def test_event_key_is_transaction_and_log_index() -> None:
    event = make_event(EventKind.BID_CREATED, HOUSE, transaction_hash=tx(1), log_index=4)

    assert event.key == EventKey(tx(1), 4)


def test_missing_parameter_raises_malformed_event() -> None:
    event = make_event(EventKind.BID_CREATED, HOUSE)

    with pytest.raises(MalformedEventError) as excinfo:
        event.uint("auctionId")

    assert excinfo.value.parameter == "auctionId"


def test_invalid_parameter_raises_malformed_event() -> None:
    event = make_event(EventKind.BID_CREATED, HOUSE, bidder="nobody")

    with pytest.raises(MalformedEventError, match="invalid 'bidder'"):
        event.address_param("bidder")


def test_optional_accessors_use_defaults() -> None:
    event = make_event(EventKind.AUCTION_ENDED, HOUSE, affiliate=ZERO_ADDRESS, winner=None)

    assert event.optional_address("affiliate") is None
    assert event.optional_address("winner") is None
    assert event.optional_uint("affiliateShare", 3) == 3
    assert event.optional_flag("isFinal") is False
    assert event.has("winner") is False


def test_text_renders_bytes_and_numbers() -> None:
    event = make_event(EventKind.BID_CREATED, HOUSE, data=b"\x00\xff", count=12)

    assert event.text("data") == "0x00ff"
    assert event.text("count") == "12"
    assert event.text("missing", "fallback") == "fallback"
    with pytest.raises(MalformedEventError):
        event.text("missing")
