"""boarcore package: weighted item draws and the JSON datasets behind them."""

from . import config, draws, eligibility, guilds, leaderboards, ledger, models, moderation, quests, rarity, storage, utils  # noqa: F401

__all__ = [
    "config",
    "draws",
    "eligibility",
    "guilds",
    "leaderboards",
    "ledger",
    "models",
    "moderation",
    "quests",
    "rarity",
    "storage",
    "utils",
]
