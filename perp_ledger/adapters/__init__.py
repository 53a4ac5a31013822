"""Adapter layer package for ledger-node and history-source boundaries."""

from .errors import (
	AccountNotFoundError,
	LedgerRpcConnectionError,
	LedgerRpcError,
	LedgerRpcRateLimitedError,
	LedgerRpcResponseError,
	LedgerRpcTimeoutError,
	LogDecodeError,
)
from .history_source import (
	JsonDirectoryHistorySource,
	RpcTransactionHistorySource,
	WalletAccountResolver,
	history_parse_transaction_entry,
	history_unwrap_log_entry,
)
from .interfaces import (
	AccountResolverPort,
	FetchedTransaction,
	LedgerNodeHealthPort,
	LogDecoderPort,
	SignatureInfo,
	TransactionHistoryBatch,
	TransactionHistoryPort,
)
from .solana_rpc import SolanaRpcClient

__all__ = [
	"AccountNotFoundError",
	"AccountResolverPort",
	"FetchedTransaction",
	"JsonDirectoryHistorySource",
	"LedgerNodeHealthPort",
	"LedgerRpcConnectionError",
	"LedgerRpcError",
	"LedgerRpcRateLimitedError",
	"LedgerRpcResponseError",
	"LedgerRpcTimeoutError",
	"LogDecodeError",
	"LogDecoderPort",
	"RpcTransactionHistorySource",
	"SignatureInfo",
	"SolanaRpcClient",
	"TransactionHistoryBatch",
	"TransactionHistoryPort",
	"WalletAccountResolver",
	"history_parse_transaction_entry",
	"history_unwrap_log_entry",
]
