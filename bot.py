import logging
import os
import sys
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

from chaosbot.config import load_config
from chaosbot.errors import ConfigError
from chaosbot.models import RingConfig
from chaosbot.ring import RingCog, add_ring_cog

load_dotenv()


def log_level_from_env() -> str:
    return os.getenv("CHAOSBOT_LOG_LEVEL", "INFO").strip().upper() or "INFO"


logging.basicConfig(
    level=log_level_from_env(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("chaosbot")
logging.getLogger("PIL").setLevel(logging.ERROR)


def build_intents() -> discord.Intents:
    # Guild cache is needed to resolve a member's role ids.
    intents = discord.Intents.none()
    intents.guilds = True
    return intents


class ChaosBot(commands.Bot):
    def __init__(self, config: RingConfig):
        super().__init__(command_prefix=commands.when_mentioned, intents=build_intents())
        self.config = config
        self.ring_cog: Optional[RingCog] = None

    async def setup_hook(self) -> None:
        self.ring_cog = await add_ring_cog(self, self.config)
        await self.sync_application_commands()

    async def sync_application_commands(self) -> None:
        guild_id = self.config.guild_id
        try:
            if guild_id:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info("Synced %s application command(s) for guild %s", len(synced), guild_id)
            else:
                synced = await self.tree.sync()
                logger.info("Synced %s global application command(s)", len(synced))
        except discord.HTTPException as exc:
            logger.warning("Failed to sync application commands: %s", exc)

    async def on_ready(self) -> None:
        logger.info("Logged in as %s (id=%s)", self.user, self.user.id if self.user else "unknown")
        for tier, role_id in self.config.role_ids.items():
            logger.info("%s ring for role %s", tier.label, role_id)


def main():
    try:
        config = load_config()
    except ConfigError as exc:
        for problem in exc.problems:
            logger.error("Configuration problem: %s", problem)
        sys.exit("ChaosBot cannot start: " + "; ".join(exc.problems))

    bot = ChaosBot(config)
    bot.run(config.token, log_handler=None)


if __name__ == "__main__":
    main()
