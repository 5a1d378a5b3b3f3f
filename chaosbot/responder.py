"""Deferred-response handling for `/ring` interactions."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Awaitable, Callable, Optional

import discord

from .attachments import fetch_attachment_bytes
from .compositor import composite_ring
from .errors import RingError, TransportError, UnprocessableImage
from .lifecycle import RingLifecycle
from .models import RingConfig, RingPhase, RingRequest, Tier
from .roles import resolve_tier

logger = logging.getLogger("chaosbot.responder")

OUTPUT_FILENAME = "avatar.png"
GENERIC_FAILURE = RingError.user_message

Fetcher = Callable[..., Awaitable[bytes]]
Compositor = Callable[..., bytes]


class RingResponder:
    """Runs one interaction through its lifecycle and always leaves a visible reply."""

    def __init__(
        self,
        config: RingConfig,
        *,
        fetcher: Optional[Fetcher] = None,
        compositor: Optional[Compositor] = None,
    ):
        self.config = config
        self._fetch = fetcher or fetch_attachment_bytes
        self._composite = compositor or composite_ring

    def _check_attachment(self, request: RingRequest) -> None:
        content_type = (request.content_type or "").split(";", 1)[0].strip().lower()
        if content_type and not content_type.startswith("image/"):
            raise UnprocessableImage(f"attachment {request.filename} has content type {content_type}")
        if request.size > self.config.max_attachment_bytes:
            raise UnprocessableImage(
                f"attachment {request.filename} is {request.size} bytes",
                user_message="That image is too large. Please upload a smaller picture.",
            )

    async def handle(self, interaction: discord.Interaction, request: RingRequest) -> RingLifecycle:
        lifecycle = RingLifecycle(request.interaction_id)
        try:
            tier = resolve_tier(request.role_ids, self.config.role_ids)
            self._check_attachment(request)
        except RingError as exc:
            logger.info("Rejected /ring from user %s: %s", request.user_id, exc.reason)
            lifecycle.fail(exc.reason)
            await self._reject(interaction, exc.user_message)
            return lifecycle

        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
        except discord.HTTPException as exc:
            # Without an acknowledgement there is nothing left to edit.
            logger.warning("Cannot defer /ring interaction %s: %s", request.interaction_id, exc)
            lifecycle.fail(f"defer failed: {exc}")
            return lifecycle
        lifecycle.advance(RingPhase.DEFERRED)

        lifecycle.advance(RingPhase.PROCESSING)
        try:
            image = await self._render(request, tier)
        except RingError as exc:
            logger.info("Interaction %s failed: %s", request.interaction_id, exc.reason)
            lifecycle.fail(exc.reason)
            await self._report_failure(interaction, exc.user_message)
            return lifecycle
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error while preparing avatar for interaction %s", request.interaction_id)
            lifecycle.fail(f"unexpected error: {exc}")
            await self._report_failure(interaction, GENERIC_FAILURE)
            return lifecycle

        try:
            await self._deliver(interaction, image, tier)
        except TransportError as exc:
            lifecycle.fail(exc.reason)
            await self._report_failure(interaction, exc.user_message)
            return lifecycle
        lifecycle.advance(RingPhase.COMPLETED)
        logger.info(
            "Sent %s ring to user %s (%s bytes)",
            tier.label,
            request.user_id,
            len(image),
        )
        return lifecycle

    async def _render(self, request: RingRequest, tier: Tier) -> bytes:
        avatar = await self._fetch(
            request.attachment_url,
            max_bytes=self.config.max_attachment_bytes,
            timeout=self.config.fetch_timeout,
        )
        return await asyncio.to_thread(
            self._composite,
            avatar,
            self.config.overlay_for(tier),
            max_pixels=self.config.max_image_pixels,
        )

    async def _deliver(self, interaction: discord.Interaction, image: bytes, tier: Tier) -> None:
        file = discord.File(io.BytesIO(image), filename=OUTPUT_FILENAME)
        try:
            await interaction.edit_original_response(
                content=f"Here is your {tier.label} ring!",
                attachments=[file],
            )
        except discord.HTTPException as exc:
            logger.warning("Cannot send back an updated avatar: %s", exc)
            raise TransportError(f"edit_original_response failed: {exc}") from exc

    async def _reject(self, interaction: discord.Interaction, message: str) -> None:
        try:
            await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as exc:
            logger.warning("Cannot respond to slash command: %s", exc)

    async def _report_failure(self, interaction: discord.Interaction, message: str) -> None:
        try:
            await interaction.edit_original_response(content=message, attachments=[])
            return
        except discord.HTTPException as exc:
            logger.warning("Cannot edit deferred response, trying a followup: %s", exc)
        try:
            await interaction.followup.send(message, ephemeral=True)
        except discord.HTTPException as exc:
            logger.error("Unable to report failure for interaction %s: %s", interaction.id, exc)


__all__ = ["OUTPUT_FILENAME", "RingResponder"]
