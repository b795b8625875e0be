#!/usr/bin/env python
"""Roll many base draws and report how often each rarity comes up."""

from __future__ import annotations

import argparse
import logging
import os
import random
from collections import Counter
from pathlib import Path

from dotenv import load_dotenv

from boarcore.config import apply_env_overrides, config_path_from_env, load_bot_config
from boarcore.draws import DrawEngine
from boarcore.models import NO_ITEM, GuildContext
from boarcore.rarity import RarityTable

logger = logging.getLogger("simulate_draws")


def parse_args() -> argparse.Namespace:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Simulate base draws against a boarcore config.")
    parser.add_argument("--config", type=Path, help="Path to the boarcore config.")
    parser.add_argument("--rolls", type=int, default=10_000, help="Number of draw calls to make (default: 10000).")
    parser.add_argument("--extra", type=int, default=0, help="Extra chance value to apply to every call.")
    parser.add_argument("--sb-server", action="store_true", help="Simulate a guild flagged as an SB server.")
    parser.add_argument("--seed", type=int, help="Seed for a reproducible run.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=os.getenv("BOARCORE_LOG_LEVEL", "INFO"),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = apply_env_overrides(load_bot_config(args.config or config_path_from_env()))
    table = RarityTable(config.rarities)
    engine = DrawEngine(table, config.items, rng=random.Random(args.seed))
    guild = GuildContext(is_sb_server=args.sb_server)

    by_tier: Counter = Counter()
    drawn = 0
    for _ in range(args.rolls):
        for item_id in engine.draw_base(guild, extra_enabled=args.extra > 0, extra_value=args.extra):
            drawn += 1
            if item_id == NO_ITEM:
                by_tier["<nothing>"] += 1
                continue
            _rank, tier = table.find_rarity(item_id, strict=True)
            by_tier[tier.key] += 1

    logger.info("%d calls produced %d draws.", args.rolls, drawn)
    for key, count in by_tier.most_common():
        print(f"{key:<12} {count:>8} {count / drawn:8.2%}")


if __name__ == "__main__":
    main()
