"""Moderation actions for chat moderation.

Applies filter decisions on Kick: delete the offending message, then
timeout or ban the sender where the decision asks for it.
"""

import logging
from typing import Optional, Protocol

from kickbot.core.logging import log_info
from kickbot.modules.moderation.kick_api import KickAPIError, KickModerationClient
from kickbot.modules.moderation.models import ModerationAction
from kickbot.modules.moderation.schemas import ModerationDecision

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60


class ActionError(Exception):
    """Raised when a moderation action could not be applied."""

    def __init__(self, message: str, action: Optional[ModerationAction] = None):
        self.message = message
        self.action = action
        super().__init__(self.message)


class ActionExecutor(Protocol):
    """Performs the platform side of a moderation decision."""

    async def apply(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        message_id: str,
    ) -> None:
        """Apply a decision to a message and its sender.

        Raises:
            ActionError: If the platform call fails
        """
        ...


class KickActionExecutor:
    """ActionExecutor backed by the Kick public API."""

    def __init__(self, client: KickModerationClient):
        self.client = client
        self._action_handlers = {
            ModerationAction.DELETE: self._execute_delete,
            ModerationAction.TIMEOUT: self._execute_timeout,
            ModerationAction.BAN: self._execute_ban,
        }

    async def apply(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        message_id: str,
    ) -> None:
        """Apply a decision through the Kick API.

        A ``none`` action is a no-op.

        Raises:
            ActionError: Wrapping any KickAPIError
        """
        handler = self._action_handlers.get(decision.action)
        if handler is None:
            return

        try:
            await handler(decision, target_user_id, message_id)
        except KickAPIError as e:
            raise ActionError(
                f"Failed to {decision.action.value} for user {target_user_id}: {e.message}",
                action=decision.action,
            ) from e

        log_info(
            logger,
            "Moderation action applied",
            action=decision.action.value,
            target_user_id=target_user_id,
            message_id=message_id,
        )

    async def _execute_delete(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        message_id: str,
    ) -> None:
        await self.client.delete_message(message_id)

    async def _execute_timeout(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        message_id: str,
    ) -> None:
        await self.client.delete_message(message_id)
        await self.client.timeout_user(
            target_user_id,
            decision.duration or DEFAULT_TIMEOUT_SECONDS,
            decision.reason,
        )

    async def _execute_ban(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        message_id: str,
    ) -> None:
        await self.client.delete_message(message_id)
        await self.client.ban_user(target_user_id, decision.reason)
