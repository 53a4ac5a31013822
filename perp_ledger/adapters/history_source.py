"""Wallet transaction-history sources backed by a ledger node or JSON dumps."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Final, Mapping

from perp_ledger.domain import domain_build_stage_event
from perp_ledger.mapping import DecodedRecord, DecodedTransaction

from .errors import AccountNotFoundError, LogDecodeError
from .interfaces import AccountResolverPort, LogDecoderPort, TransactionHistoryBatch, TransactionHistoryPort
from .solana_rpc import SolanaRpcClient

logger = logging.getLogger(__name__)

_BASE58_ADDRESS_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class WalletAccountResolver(AccountResolverPort):
    """Resolve a wallet to itself after validating its address format."""

    def account_resolve(self, wallet: str) -> str:
        """Return the wallet address as the trading account.

        Args:
            wallet: Wallet address.

        Returns:
            str: Normalized wallet address.

        Raises:
            AccountNotFoundError: Raised when the wallet is not a base58 address.
        """

        normalized_wallet = wallet.strip()
        if not _BASE58_ADDRESS_PATTERN.match(normalized_wallet):
            raise AccountNotFoundError(f"no trading account can be identified for wallet={wallet!r}")
        return normalized_wallet


class RpcTransactionHistorySource(TransactionHistoryPort):
    """History source listing, fetching and decoding transactions from a ledger node."""

    def __init__(
        self,
        rpc_client: SolanaRpcClient,
        log_decoder: LogDecoderPort,
        account_resolver: AccountResolverPort | None = None,
    ):
        """Initialize history source dependencies.

        Args:
            rpc_client: Ledger-node client.
            log_decoder: Program log decoder.
            account_resolver: Optional wallet to trading-account resolver.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if rpc_client is None:
            raise ValueError("rpc_client must not be None")
        if log_decoder is None:
            raise ValueError("log_decoder must not be None")
        self._rpc_client = rpc_client
        self._log_decoder = log_decoder
        self._account_resolver = account_resolver or WalletAccountResolver()

    def history_source_name(self) -> str:
        """Return stable history source label."""

        return "ledger_node_rpc"

    def history_fetch_transactions(self, wallet: str, limit: int) -> TransactionHistoryBatch:
        """Fetch and decode the most recent transactions of one wallet.

        Missing transaction bodies and undecodable log sets are skipped.

        Args:
            wallet: Wallet address.
            limit: Maximum number of most recent transactions.

        Returns:
            TransactionHistoryBatch: Decoded history, newest first.

        Raises:
            AccountNotFoundError: Raised when no trading account exists for the wallet.
            ValueError: Raised when limit is below one.
        """

        stage_timeline: list[dict[str, object]] = []
        account_address = self._account_resolver.account_resolve(wallet)
        signatures = self._rpc_client.rpc_list_signatures(account_address, limit, stage_timeline)
        fetched_transactions = self._rpc_client.rpc_get_transactions(
            [signature_info.signature for signature_info in signatures],
            stage_timeline,
        )

        decoded_transactions: list[DecodedTransaction] = []
        decode_failure_count = 0
        for signature_info, fetched_transaction in zip(signatures, fetched_transactions):
            if fetched_transaction is None or not fetched_transaction.log_messages:
                continue
            try:
                records = self._log_decoder.decoder_decode_logs(fetched_transaction.log_messages)
            except LogDecodeError as error:
                decode_failure_count += 1
                logger.warning("log decode failed signature=%s reason=%s", signature_info.signature, error)
                continue
            if not records:
                continue

            decoded_transactions.append(
                DecodedTransaction(
                    signature=signature_info.signature,
                    timestamp=int(signature_info.block_time or fetched_transaction.block_time or 0),
                    records=tuple(records),
                    slot=fetched_transaction.slot if fetched_transaction.slot is not None else signature_info.slot,
                )
            )

        stage_timeline.append(
            domain_build_stage_event(
                stage="decode",
                status="completed",
                details={"decoded": len(decoded_transactions), "decode_failures": decode_failure_count},
            )
        )
        return TransactionHistoryBatch(
            transactions=tuple(decoded_transactions),
            newest_first=True,
            stage_timeline=stage_timeline,
        )


class JsonDirectoryHistorySource(TransactionHistoryPort):
    """History source reading already-decoded transactions from `<directory>/<wallet>.json`.

    A dump is either a list of transactions (newest first, as the trade-log
    endpoint emits them) or an object `{"newest_first": bool, "transactions": [...]}`.
    Each transaction is `{signature, timestamp, slot?, logs}` where every log is a
    decoded record or a `{type, data}` wrapper around one.
    """

    def __init__(self, history_directory: str):
        """Initialize dump directory.

        Args:
            history_directory: Directory holding per-wallet JSON dumps.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when the directory path is blank.
        """

        normalized_directory = history_directory.strip()
        if not normalized_directory:
            raise ValueError("history_directory must not be blank")
        self._directory = Path(normalized_directory)

    def history_source_name(self) -> str:
        """Return stable history source label."""

        return "json_directory"

    def history_fetch_transactions(self, wallet: str, limit: int) -> TransactionHistoryBatch:
        """Load the most recent transactions of one wallet from its dump file.

        Args:
            wallet: Wallet address naming the dump file.
            limit: Maximum number of most recent transactions.

        Returns:
            TransactionHistoryBatch: Decoded history in dump order.

        Raises:
            AccountNotFoundError: Raised when no dump exists for the wallet.
            LogDecodeError: Raised when the dump file is not a valid history document.
            ValueError: Raised when limit is below one.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")

        dump_path = self._history_dump_path(wallet)
        try:
            dump_payload = json.loads(dump_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            raise LogDecodeError(f"history dump could not be decoded: {dump_path}") from error

        if isinstance(dump_payload, list):
            newest_first = True
            transaction_entries = dump_payload
        elif isinstance(dump_payload, dict) and isinstance(dump_payload.get("transactions"), list):
            newest_first = bool(dump_payload.get("newest_first", True))
            transaction_entries = dump_payload["transactions"]
        else:
            raise LogDecodeError(f"history dump has an unsupported layout: {dump_path}")

        recent_entries = transaction_entries[:limit] if newest_first else transaction_entries[-limit:]
        decoded_transactions: list[DecodedTransaction] = []
        for entry_index, transaction_entry in enumerate(recent_entries):
            try:
                decoded_transaction = history_parse_transaction_entry(transaction_entry)
            except LogDecodeError as error:
                logger.warning("skipping history entry index=%s file=%s reason=%s", entry_index, dump_path, error)
                continue
            if decoded_transaction.records:
                decoded_transactions.append(decoded_transaction)

        return TransactionHistoryBatch(
            transactions=tuple(decoded_transactions),
            newest_first=newest_first,
            stage_timeline=[
                domain_build_stage_event(
                    stage="load",
                    status="completed",
                    details={"file": str(dump_path), "decoded": len(decoded_transactions)},
                )
            ],
        )

    def _history_dump_path(self, wallet: str) -> Path:
        """Resolve the dump path of one wallet, rejecting path-like names."""

        normalized_wallet = wallet.strip()
        if not normalized_wallet or normalized_wallet.startswith(".") or "/" in normalized_wallet or "\\" in normalized_wallet:
            raise AccountNotFoundError(f"no trading account can be identified for wallet={wallet!r}")
        dump_path = self._directory / f"{normalized_wallet}.json"
        if not dump_path.is_file():
            raise AccountNotFoundError(f"no history dump exists for wallet={normalized_wallet}")
        return dump_path


def history_parse_transaction_entry(transaction_entry: object) -> DecodedTransaction:
    """Parse one dumped transaction into a decoded transaction.

    Args:
        transaction_entry: Candidate `{signature, timestamp, slot?, logs}` object.

    Returns:
        DecodedTransaction: Parsed transaction with unwrapped records.

    Raises:
        LogDecodeError: Raised when the entry is malformed.
    """

    if not isinstance(transaction_entry, dict):
        raise LogDecodeError("transaction entry must be an object")
    signature = transaction_entry.get("signature")
    if not isinstance(signature, str) or not signature.strip():
        raise LogDecodeError("transaction entry is missing its signature")
    log_entries = transaction_entry.get("logs", [])
    if not isinstance(log_entries, list):
        raise LogDecodeError(f"logs of {signature} must be a list")

    try:
        timestamp = int(transaction_entry.get("timestamp") or 0)
        slot_value = transaction_entry.get("slot")
        slot = None if slot_value is None else int(slot_value)
    except (TypeError, ValueError) as error:
        raise LogDecodeError(f"timestamp or slot of {signature} is not an integer") from error

    return DecodedTransaction(
        signature=signature.strip(),
        timestamp=timestamp,
        records=tuple(history_unwrap_log_entry(log_entry, signature) for log_entry in log_entries),
        slot=slot,
    )


def history_unwrap_log_entry(log_entry: object, signature: str) -> DecodedRecord:
    """Return the decoded record of one dumped log, unwrapping `{type, data}` entries.

    Args:
        log_entry: Dumped log entry.
        signature: Owning transaction signature for error messages.

    Returns:
        DecodedRecord: Decoded record mapping.

    Raises:
        LogDecodeError: Raised when the entry is not an object.
    """

    if not isinstance(log_entry, dict):
        raise LogDecodeError(f"log entry of {signature} must be an object")
    wrapped_record = log_entry.get("data")
    if "tag" not in log_entry and isinstance(wrapped_record, Mapping):
        return dict(wrapped_record)
    return dict(log_entry)


__all__ = [
    "JsonDirectoryHistorySource",
    "RpcTransactionHistorySource",
    "WalletAccountResolver",
    "history_parse_transaction_entry",
    "history_unwrap_log_entry",
]
