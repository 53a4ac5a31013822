"""Regression tests for per-transaction trade-log enrichment."""

from __future__ import annotations

from decimal import Decimal

from perp_ledger.instruments import InstrumentRegistry, TokenMetadata
from perp_ledger.mapping import mapping_enrich_transaction_reports, mapping_report_type_name


class _CatalogMarketNames:
    """Test double resolving market and token names from a fixed catalog."""

    def instrument_market_name(self, instr_id: int) -> str:
        """Return a catalog market name.

        Args:
            instr_id: Instrument identifier.

        Returns:
            str: Market name.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return f"MKT-{instr_id}"

    def instrument_token_metadata(self, token_id: int) -> TokenMetadata:
        """Return catalog token metadata.

        Args:
            token_id: Token identifier.

        Returns:
            TokenMetadata: Catalog token metadata.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return TokenMetadata(symbol=f"TKN-{token_id}", decimals=6)


def test_mapping_enrich_adds_fill_labels_and_aggregated_order_fees() -> None:
    """Attach market, side, quantity, price, fee total and fill type to fills.

    Returns:
        None: Assertions validate enrichment of fill and order records.

    Raises:
        AssertionError: Raised when an enriched field deviates.
    """

    records = [
        {"tag": 18, "instrId": 0, "orderId": 5, "orderType": 1, "side": 0, "perps": 2, "price": 100},
        {"tag": 15, "orderId": 5, "fee": "0.5"},
        {"tag": 15, "orderId": 5, "fee": "0.25"},
        {"tag": 19, "orderId": 5, "side": 0, "perps": 2, "price": 101},
    ]

    reports = mapping_enrich_transaction_reports(records, InstrumentRegistry())

    assert [report["type"] for report in reports] == ["perpPlaceOrder", "perpFees", "perpFees", "perpFillOrder"]
    fill_data = reports[3]["data"]
    assert fill_data["market"] == "SOL/USDC"
    assert fill_data["instrId"] == 0
    assert fill_data["side_label"] == "BUY"
    assert fill_data["action"] == "BUY SOL/USDC"
    assert fill_data["fee"] == Decimal("0.75")
    assert fill_data["qty"] == Decimal("2")
    assert fill_data["price"] == Decimal("101")
    assert fill_data["fill_type"] == "Market"
    assert reports[0]["data"]["fill_type"] == "Market"
    assert "side_label" not in reports[1]["data"]


def test_mapping_enrich_preserves_unknown_records_and_json_unsafe_values() -> None:
    """Keep unmapped tags, resolve token names and stringify oversized integers.

    Returns:
        None: Assertions validate unknown-record preservation.

    Raises:
        AssertionError: Raised when unknown records are altered or dropped.
    """

    reports = mapping_enrich_transaction_reports(
        [{"tag": 99, "instrId": 0, "tokenId": 1, "amount": 2**60}],
        InstrumentRegistry(),
    )

    assert reports[0]["type"] == "unknown_99"
    assert reports[0]["data"]["token_name"] == "USDC"
    assert reports[0]["data"]["amount"] == str(2**60)
    assert reports[0]["data"]["tag"] == 99


def test_mapping_enrich_marks_transactions_without_instrument_as_unknown_market() -> None:
    """Render records of instrument-less transactions with the unknown market label.

    Returns:
        None: Assertions validate unknown-market fallback.

    Raises:
        AssertionError: Raised when a market is invented for unattributed records.
    """

    reports = mapping_enrich_transaction_reports([{"tag": 24, "funding": 1}], InstrumentRegistry())

    assert reports[0]["data"]["market"] == "Unknown Market"
    assert reports[0]["data"]["instrId"] is None
    assert mapping_report_type_name(24) == "perpFunding"


def test_mapping_enrich_keeps_malformed_records_raw_beside_enriched_ones() -> None:
    """Keep malformed records with raw data while enriching their neighbours.

    Returns:
        None: Assertions validate per-record preservation.

    Raises:
        AssertionError: Raised when a malformed record drops the transaction logs.
    """

    records = [
        {"tag": "x19", "instrId": 0, "perps": 1},
        {"instrId": 0},
        {"tag": 15, "orderId": 5, "fee": "broken"},
        {"tag": 19, "instrId": 0, "orderId": 5, "side": 1, "perps": 2, "price": 50},
    ]

    reports = mapping_enrich_transaction_reports(records, InstrumentRegistry())

    assert [report["type"] for report in reports] == ["unknown_x19", "unknown", "perpFees", "perpFillOrder"]
    assert reports[0]["data"]["perps"] == 1
    assert "tag" in reports[0]["data"]["decode_error"]
    assert "decode_error" in reports[1]["data"]
    assert reports[3]["data"]["side_label"] == "SELL"
    assert reports[3]["data"]["fee"] == Decimal("0")
    assert reports[3]["data"]["qty"] == Decimal("2")


def test_mapping_enrich_resolves_token_names_through_market_name_port() -> None:
    """Use the injected resolver for both market and token names.

    Returns:
        None: Assertions validate resolver usage.

    Raises:
        AssertionError: Raised when token names bypass the resolver.
    """

    reports = mapping_enrich_transaction_reports(
        [{"tag": 24, "instrId": 3, "tokenId": 7, "funding": 1}],
        _CatalogMarketNames(),
    )

    assert reports[0]["type"] == "perpFunding"
    assert reports[0]["data"]["market"] == "MKT-3"
    assert reports[0]["data"]["token_name"] == "TKN-7"
