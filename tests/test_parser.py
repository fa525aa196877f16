from copytrader.core.parser import (
    POSITION_ENVELOPE_KEYS,
    TRADE_ENVELOPE_KEYS,
    extract_items,
    parse_positions,
    parse_trades,
    to_market,
    to_position,
    to_trade,
    total_value,
)


def test_data_envelope_position_normalizes_value_from_current_price():
    payload = {"data": [{"asset": "X", "size": "3", "curPrice": "0.25"}]}

    [position] = parse_positions(extract_items(payload, POSITION_ENVELOPE_KEYS))

    assert position.id == "X"
    assert position.quantity == "3"
    assert position.price == "0.25"
    assert position.value == "0.75"


def test_extract_items_handles_every_envelope_shape():
    rows = [{"asset": "A"}]
    assert extract_items({"positions": rows}, POSITION_ENVELOPE_KEYS) == rows
    assert extract_items({"data": rows}, POSITION_ENVELOPE_KEYS) == rows
    assert extract_items(rows, POSITION_ENVELOPE_KEYS) == rows
    assert extract_items({"trades": rows}, TRADE_ENVELOPE_KEYS) == rows
    # positions wins over data when both are present
    assert extract_items({"positions": rows, "data": [{}]}, POSITION_ENVELOPE_KEYS) == rows
    # null envelope falls through to the next key
    assert extract_items({"positions": None, "data": rows}, POSITION_ENVELOPE_KEYS) == rows


def test_extract_items_rejects_non_list_bodies():
    assert extract_items({"positions": {"asset": "A"}}, POSITION_ENVELOPE_KEYS) == []
    assert extract_items({"unexpected": 1}, POSITION_ENVELOPE_KEYS) == []
    assert extract_items(None, POSITION_ENVELOPE_KEYS) == []
    assert extract_items("oops", POSITION_ENVELOPE_KEYS) == []


def test_position_value_fallback_order():
    explicit = to_position({"asset": "A", "size": "2", "curPrice": "0.5", "currentValue": "1.5"})
    current = to_position({"asset": "A", "size": "2", "curPrice": "0.5", "avgPrice": "0.4"})
    average = to_position({"asset": "A", "size": "2", "avgPrice": "0.4"})
    nothing = to_position({"asset": "A", "size": "2"})

    assert explicit.value == "1.5"
    assert current.value == "1"
    assert average.value == "0.8"
    assert average.price == "0.4"
    assert nothing.value == "0"
    assert nothing.price == "0"


def test_position_field_presence_beats_truthiness():
    # "0" is present, so quantity is not consulted
    position = to_position({"asset": "A", "size": "0", "quantity": "5", "avgPrice": "0.4"})
    assert position.quantity == "0"
    assert position.value == "0"
    assert position.initial_value is None


def test_position_id_and_initial_value():
    assert to_position({"asset": "tok", "id": "row", "positionId": "p"}).id == "tok"
    assert to_position({"id": "row", "positionId": "p"}).id == "row"
    assert to_position({"positionId": "p"}).id == "p"
    assert to_position({}).id == ""

    derived = to_position({"asset": "A", "size": "4", "avgPrice": "0.25"})
    assert derived.initial_value == "1"
    explicit = to_position({"asset": "A", "size": "4", "avgPrice": "0.25", "initialValue": 2})
    assert explicit.initial_value == "2"


def test_numeric_timestamp_becomes_iso_and_strings_pass_through():
    assert to_position({"asset": "A", "timestamp": 1700000000}).timestamp == "2023-11-14T22:13:20.000Z"
    assert to_position({"asset": "A", "timestamp": "2024-05-01T00:00:00Z"}).timestamp == "2024-05-01T00:00:00Z"
    assert to_position({"asset": "A"}).timestamp.endswith("Z")


def test_market_identifier_priority_and_defaults():
    assert to_market({"id": "m1", "marketId": "m2", "conditionId": "c"}).id == "m1"
    assert to_market({"market_id": "m3", "conditionId": "c"}).id == "m3"
    assert to_market({"conditionId": "c"}).id == "c"

    market = to_market({})
    assert market.id == ""
    assert market.question == "Unknown Market"
    assert market.tags == []
    assert market.active is True
    assert market.liquidity is None


def test_market_optional_fields():
    market = to_market(
        {
            "title": "BTC above 100k?",
            "slug": "btc-100k",
            "end_date": "2026-12-31",
            "tags": ["crypto", 7, "btc"],
            "liquidity": "1200.50",
            "volume": 0,
            "active": False,
        }
    )
    assert market.question == "BTC above 100k?"
    assert market.end_date == "2026-12-31"
    assert market.tags == ["crypto", "btc"]
    assert market.liquidity == "1200.5"
    assert market.volume is None
    assert market.active is False


def test_trade_side_normalization():
    assert to_trade({"side": "BUY"}).side == "buy"
    assert to_trade({"side": " buy "}).side == "buy"
    assert to_trade({"side": "Sell"}).side == "sell"
    assert to_trade({"side": "b"}).side == "sell"
    assert to_trade({}).side == "sell"


def test_trade_identifier_and_fields():
    trade = to_trade(
        {
            "transactionHash": "0xabc",
            "id": "t1",
            "amount": "7",
            "executionPrice": "0.33",
            "userAddress": "0xuser",
            "outcome": "No",
        }
    )
    assert trade.id == "0xabc"
    assert trade.transaction_hash == "0xabc"
    assert trade.quantity == "7"
    assert trade.price == "0.33"
    assert trade.user == "0xuser"
    assert trade.outcome == "No"

    assert to_trade({"id": "t1", "txHash": "0xdef"}).id == "t1"
    assert to_trade({"txHash": "0xdef"}).transaction_hash == "0xdef"
    assert to_trade({}).id.startswith("trade-")


def test_non_dict_rows_are_skipped():
    assert [p.id for p in parse_positions([None, "x", {"asset": "A"}, 3])] == ["A"]
    assert len(parse_trades([{}, None])) == 1


def test_total_value_uses_six_decimals():
    positions = parse_positions(
        [
            {"asset": "A", "size": "3", "curPrice": "0.25"},
            {"asset": "B", "size": "2", "avgPrice": "0.4"},
        ]
    )
    assert total_value(positions) == "1.550000"
    assert total_value([]) == "0.000000"


def test_out_of_range_numeric_timestamp_does_not_break_the_batch():
    positions = parse_positions(
        [
            {"asset": "OK", "timestamp": 1700000000},
            {"asset": "MS", "timestamp": 1700000000000},
            {"asset": "INF", "timestamp": float("inf")},
            {"asset": "NAN", "timestamp": float("nan")},
        ]
    )

    assert [p.id for p in positions] == ["OK", "MS", "INF", "NAN"]
    assert positions[0].timestamp == "2023-11-14T22:13:20.000Z"
    for p in positions[1:]:
        assert p.timestamp.endswith("Z")
    assert to_trade({"timestamp": 10 ** 20}).timestamp.endswith("Z")


def test_present_but_falsy_fields_are_kept():
    market = to_market({"id": 0, "question": "", "slug": ""})
    assert market.id == "0"
    assert market.question == ""

    position = to_position({"asset": 0, "outcome": ""})
    assert position.id == "0"
    assert position.outcome == ""

    assert to_trade({"user": "", "userAddress": "0xuser"}).user == ""
    # missing or None still falls through to the next key or default
    assert to_market({"question": None, "title": "T"}).question == "T"
    assert to_market({"question": None}).question == "Unknown Market"
