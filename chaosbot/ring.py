"""The `/ring` slash command."""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from .errors import RingError
from .models import RingConfig, RingRequest
from .responder import RingResponder

logger = logging.getLogger("chaosbot.ring")


def build_ring_request(interaction: discord.Interaction, avatar: discord.Attachment) -> RingRequest:
    roles = getattr(interaction.user, "roles", None) or []
    return RingRequest(
        interaction_id=interaction.id,
        user_id=interaction.user.id,
        guild_id=interaction.guild_id,
        role_ids=frozenset(role.id for role in roles),
        attachment_url=avatar.url,
        filename=avatar.filename,
        content_type=avatar.content_type,
        size=avatar.size,
    )


class RingCog(commands.Cog):
    """Overlays a tier ring onto an uploaded avatar."""

    def __init__(self, bot: commands.Bot, config: RingConfig, *, responder: Optional[RingResponder] = None):
        self.bot = bot
        self.config = config
        self.responder = responder or RingResponder(config)

    @app_commands.command(name="ring", description="Overlay a ChaosDAO ring to an avatar")
    @app_commands.describe(avatar="A square profile picture")
    @app_commands.guild_only()
    async def ring(self, interaction: discord.Interaction, avatar: discord.Attachment) -> None:
        request = build_ring_request(interaction, avatar)
        logger.info(
            "/ring from user %s in guild %s (%s, %s bytes)",
            request.user_id,
            request.guild_id,
            request.filename,
            request.size,
        )
        await self.responder.handle(interaction, request)

    async def cog_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        logger.error("Unhandled error in /ring: %s", error, exc_info=error)
        message = RingError.user_message
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as exc:
            logger.warning("Cannot report /ring error: %s", exc)


async def add_ring_cog(bot: commands.Bot, config: RingConfig) -> RingCog:
    cog = RingCog(bot, config)
    await bot.add_cog(cog)
    logger.info("/ring command registered")
    return cog


__all__ = ["RingCog", "add_ring_cog", "build_ring_request"]
