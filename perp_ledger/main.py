"""Main module entrypoint for local runtime execution.

This module validates startup configuration, configures logging and either
launches the FastAPI service or replays one decoded history dump offline.
"""

import argparse
import json
import logging
from pathlib import Path

import uvicorn

from perp_ledger.adapters import JsonDirectoryHistorySource, LogDecodeError
from perp_ledger.api.serializers import api_serialize_wallet_timeline
from perp_ledger.bootstrap import bootstrap_create_application
from perp_ledger.config import AppSettings, config_load_settings
from perp_ledger.instruments import instruments_load_registry
from perp_ledger.ledger import ReplayOptions, WalletPnlTimelineService

logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Perp PnL Ledger runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "replay-file"),
        help="Runtime command: `api` starts server, `replay-file` replays one decoded history dump "
        "and prints the timeline payload",
        type=str,
    )
    argument_parser.add_argument(
        "--history-file",
        dest="history_file",
        type=str,
        help="Decoded history dump (`<wallet>.json`) for `replay-file`",
    )
    argument_parser.add_argument(
        "--instr-id",
        dest="instr_id",
        type=int,
        help="Optional instrument filter for `replay-file`",
    )
    argument_parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        help="Optional timeline entry limit for `replay-file`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    main_configure_logging(settings)

    if parsed_arguments.command == "replay-file":
        if not parsed_arguments.history_file:
            argument_parser.error("--history-file is required for `replay-file`")
        exit_code = main_replay_history_file(
            settings=settings,
            history_file=parsed_arguments.history_file,
            instr_id=parsed_arguments.instr_id,
            limit=parsed_arguments.limit,
        )
        if exit_code != 0:
            raise SystemExit(exit_code)
        return

    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
        log_level=settings.log_level.lower(),
    )


def main_configure_logging(settings: AppSettings) -> None:
    """Configure root logging from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        None: Configures logging as side effect.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main_replay_history_file(
    settings: AppSettings,
    history_file: str,
    instr_id: int | None = None,
    limit: int | None = None,
) -> int:
    """Replay one decoded history dump and print the timeline payload as JSON.

    Args:
        settings: Validated runtime settings.
        history_file: Path of a `<wallet>.json` dump.
        instr_id: Optional instrument filter.
        limit: Optional timeline entry limit.

    Returns:
        int: Process exit code.

    Raises:
        ValueError: Raised when options or the instrument catalog are invalid.
    """

    history_path = Path(history_file)
    wallet_service = WalletPnlTimelineService(
        history_source=JsonDirectoryHistorySource(history_directory=str(history_path.parent)),
        market_names=instruments_load_registry(settings.instrument_catalog_path),
        history_limit=settings.timeline_history_limit,
    )
    if not history_path.is_file():
        logger.error("history file not found path=%s", history_path)
        return 1

    try:
        timeline_result = wallet_service.ledger_build_wallet_timeline(
            wallet=history_path.stem,
            options=ReplayOptions(instrument_filter=instr_id, limit=limit or settings.timeline_default_limit),
        )
    except LogDecodeError as error:
        logger.error("history file could not be replayed reason=%s", error)
        return 1

    print(json.dumps(api_serialize_wallet_timeline(timeline_result), indent=2))
    return 0


if __name__ == "__main__":
    main()
