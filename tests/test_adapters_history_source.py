"""Regression tests for ledger-node and JSON-dump wallet history sources."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import pytest

from perp_ledger.adapters import (
    AccountNotFoundError,
    FetchedTransaction,
    JsonDirectoryHistorySource,
    LogDecodeError,
    RpcTransactionHistorySource,
    SignatureInfo,
    WalletAccountResolver,
)

_WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"


class _RpcClientStub:
    """Test double serving fixed signatures and transaction bodies."""

    def __init__(self) -> None:
        self.listed_addresses: list[tuple[str, int]] = []

    def rpc_list_signatures(
        self,
        address: str,
        limit: int,
        stage_timeline: list[dict[str, object]] | None = None,
    ) -> list[SignatureInfo]:
        """Return fixed newest-first signatures.

        Args:
            address: Account address.
            limit: Requested signature limit.
            stage_timeline: Optional diagnostics timeline.

        Returns:
            list[SignatureInfo]: Fixed signatures.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        _ = stage_timeline
        self.listed_addresses.append((address, limit))
        return [
            SignatureInfo(signature="sig-ok", slot=5, block_time=100),
            SignatureInfo(signature="sig-missing", slot=4, block_time=90),
            SignatureInfo(signature="sig-undecodable", slot=3, block_time=80),
            SignatureInfo(signature="sig-no-records", slot=2, block_time=70),
            SignatureInfo(signature="sig-body-time", slot=1, block_time=None),
        ]

    def rpc_get_transactions(
        self,
        signatures: Sequence[str],
        stage_timeline: list[dict[str, object]] | None = None,
    ) -> list[FetchedTransaction | None]:
        """Return bodies aligned with signatures, one of them missing.

        Args:
            signatures: Requested signatures.
            stage_timeline: Optional diagnostics timeline.

        Returns:
            list[FetchedTransaction | None]: Aligned bodies.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        _ = stage_timeline
        return [
            None
            if signature == "sig-missing"
            else FetchedTransaction(signature=signature, slot=None, block_time=50, log_messages=(signature,))
            for signature in signatures
        ]


class _LogDecoderStub:
    """Test double decoding log messages by signature name."""

    def decoder_decode_logs(self, log_messages: Sequence[str]) -> list[dict[str, object]]:
        """Decode or reject logs by marker.

        Args:
            log_messages: Raw program log lines.

        Returns:
            list[dict[str, object]]: Decoded records.

        Raises:
            LogDecodeError: Raised for the undecodable marker.
        """

        if log_messages[0] == "sig-undecodable":
            raise LogDecodeError("unsupported log layout")
        if log_messages[0] == "sig-no-records":
            return []
        return [{"tag": 24, "instrId": 0, "funding": 1}]


def _write_dump(directory: Path, wallet: str, payload: object) -> None:
    """Write one JSON history dump.

    Args:
        directory: Dump directory.
        wallet: Wallet naming the dump.
        payload: JSON payload.

    Returns:
        None: Writes the dump as side effect.

    Raises:
        OSError: Raised when the file cannot be written.
    """

    (directory / f"{wallet}.json").write_text(json.dumps(payload), encoding="utf-8")


def test_adapters_rpc_history_decodes_transactions_and_skips_unusable_ones() -> None:
    """Decode fetched transactions and skip missing, undecodable and empty ones.

    Returns:
        None: Assertions validate decoded history contents.

    Raises:
        AssertionError: Raised when unusable transactions leak into history.
    """

    rpc_client = _RpcClientStub()
    history_source = RpcTransactionHistorySource(rpc_client=rpc_client, log_decoder=_LogDecoderStub())

    history_batch = history_source.history_fetch_transactions(_WALLET, 25)

    assert rpc_client.listed_addresses == [(_WALLET, 25)]
    assert history_batch.newest_first is True
    assert [transaction.signature for transaction in history_batch.transactions] == ["sig-ok", "sig-body-time"]
    assert [transaction.timestamp for transaction in history_batch.transactions] == [100, 50]
    assert history_batch.transactions[1].slot == 1
    assert history_batch.stage_timeline[-1]["details"] == {"decoded": 2, "decode_failures": 1}


def test_adapters_wallet_resolver_rejects_non_address_wallets() -> None:
    """Raise AccountNotFoundError for wallets that are not base58 addresses.

    Returns:
        None: Assertions validate wallet resolution.

    Raises:
        AssertionError: Raised when invalid wallets resolve.
    """

    resolver = WalletAccountResolver()

    assert resolver.account_resolve(f" {_WALLET} ") == _WALLET
    with pytest.raises(AccountNotFoundError):
        resolver.account_resolve("not-a-wallet!")
    with pytest.raises(AccountNotFoundError):
        RpcTransactionHistorySource(_RpcClientStub(), _LogDecoderStub()).history_fetch_transactions("0OIl", 5)


def test_adapters_json_history_unwraps_trade_log_dumps(tmp_path: Path) -> None:
    """Load newest-first list dumps and unwrap `{type, data}` log entries.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate dump parsing.

    Raises:
        AssertionError: Raised when dump entries are parsed incorrectly.
    """

    _write_dump(
        tmp_path,
        "walletA",
        [
            {"signature": "s3", "timestamp": 300, "logs": [{"type": "perpFunding", "data": {"tag": 24, "instrId": 0}}]},
            {"signature": "s2", "timestamp": 200, "slot": 12, "logs": [{"tag": 15, "instrId": 0, "fee": 1}]},
            {"timestamp": 150, "logs": []},
            {"signature": "s1", "timestamp": 100, "logs": []},
        ],
    )
    history_source = JsonDirectoryHistorySource(str(tmp_path))

    history_batch = history_source.history_fetch_transactions("walletA", 10)
    limited_batch = history_source.history_fetch_transactions("walletA", 1)

    assert history_batch.newest_first is True
    assert [transaction.signature for transaction in history_batch.transactions] == ["s3", "s2"]
    assert history_batch.transactions[0].records == ({"tag": 24, "instrId": 0},)
    assert history_batch.transactions[1].slot == 12
    assert [transaction.signature for transaction in limited_batch.transactions] == ["s3"]


def test_adapters_json_history_honors_oldest_first_object_layout(tmp_path: Path) -> None:
    """Keep the most recent entries from the tail of oldest-first object dumps.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate oldest-first slicing.

    Raises:
        AssertionError: Raised when the wrong end of the dump is kept.
    """

    _write_dump(
        tmp_path,
        "walletB",
        {
            "newest_first": False,
            "transactions": [
                {"signature": f"s{index}", "timestamp": index, "logs": [{"tag": 24, "instrId": 0, "funding": 1}]}
                for index in range(1, 5)
            ],
        },
    )

    history_batch = JsonDirectoryHistorySource(str(tmp_path)).history_fetch_transactions("walletB", 2)

    assert history_batch.newest_first is False
    assert [transaction.signature for transaction in history_batch.transactions] == ["s3", "s4"]


def test_adapters_json_history_maps_missing_and_invalid_dumps(tmp_path: Path) -> None:
    """Raise AccountNotFoundError for missing dumps and LogDecodeError for invalid ones.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate dump error mapping.

    Raises:
        AssertionError: Raised when dump errors are mapped incorrectly.
    """

    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    _write_dump(tmp_path, "scalar", 42)
    history_source = JsonDirectoryHistorySource(str(tmp_path))

    with pytest.raises(AccountNotFoundError):
        history_source.history_fetch_transactions("absent", 10)
    with pytest.raises(AccountNotFoundError):
        history_source.history_fetch_transactions("../broken", 10)
    with pytest.raises(LogDecodeError):
        history_source.history_fetch_transactions("broken", 10)
    with pytest.raises(LogDecodeError, match="layout"):
        history_source.history_fetch_transactions("scalar", 10)
    with pytest.raises(ValueError, match="limit"):
        history_source.history_fetch_transactions("scalar", 0)
