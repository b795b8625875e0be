#!/usr/bin/env python
"""Sync every global dataset with the current boarcore config."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from boarcore.config import apply_env_overrides, config_path_from_env, load_bot_config
from boarcore.ledger import RecordingLedger
from boarcore.storage import GlobalFile, GlobalStore
from boarcore.utils import utc_now

logger = logging.getLogger("reconcile_global_data")


def parse_args() -> argparse.Namespace:
    load_dotenv()
    parser = argparse.ArgumentParser(
        description="Create missing global data files and reconcile them against the config.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the boarcore config (defaults to BOARCORE_CONFIG_PATH or boarcore_config.yml).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report retired powerups and the payouts they would trigger without writing anything.",
    )
    parser.add_argument(
        "--payout-log",
        type=Path,
        help="JSON file that records every payout as it is made (defaults to a timestamped file in the global data folder).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Increase logging verbosity.",
    )
    return parser.parse_args()


def report_retired_powerups(store: GlobalStore) -> int:
    pending = store.pending_payouts()
    for powerup_id, payouts in pending.items():
        for payout in payouts:
            logger.info(
                "Would pay %s for '%s': %d units, %d score",
                payout.user_id,
                powerup_id,
                payout.units,
                payout.score,
            )
    return len(pending)


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else os.getenv("BOARCORE_LOG_LEVEL", "INFO"),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = apply_env_overrides(load_bot_config(args.config or config_path_from_env()))

    if args.dry_run:
        retired = report_retired_powerups(GlobalStore(config))
        logger.info("Dry run complete: %d retired powerups.", retired)
        return

    payout_log = args.payout_log or config.paths.global_dir / f"payouts-{utc_now():%Y%m%dT%H%M%SZ}.json"
    ledger = RecordingLedger(journal=payout_log)
    store = GlobalStore(config, ledger=ledger)

    for kind in GlobalFile:
        store.load_and_reconcile(kind)
        logger.info("Reconciled %s.", store.path_for(kind))

    for user_id, (units, score) in sorted(ledger.totals().items()):
        print(f"{user_id}\tunits={units}\tscore={score}")
    if ledger.payouts:
        logger.info("Recorded %d compensation payouts in %s.", len(ledger.payouts), payout_log)


if __name__ == "__main__":
    main()
