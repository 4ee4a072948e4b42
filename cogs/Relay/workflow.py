# cogs/Relay/workflow.py
"""
The relay workflow run by one ``forward`` command.

    AUTHORIZING -> FORWARDING -> [VOTING] -> RESOLVED -> REPLY_RELAY -> CLOSED

External requests (with a recipient) are put to a reaction vote in the
committee channel and delivered by DM only when approved. Every request,
approved or not, then relays the committee's replies back to the requester
until the reply window closes. Authorization failures end in FAILED after a
reply to the requester.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import discord
from discord.ext import commands

from utils.config import Committee, Configuration
from utils.logging_setup import get_logger
from . import constants
from .authorization import AuthorizationError, authorize
from .collectors import ReplyStream
from .converters import parse_arguments

logger = get_logger(__name__)


class WorkflowState(Enum):
    AUTHORIZING = "authorizing"
    FORWARDING = "forwarding"
    VOTING = "voting"
    RESOLVED = "resolved"
    REPLY_RELAY = "reply_relay"
    CLOSED = "closed"
    FAILED = "failed"


class ApprovalState(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


@dataclass
class RelayRequest:
    requester_id: int
    committee: Committee
    raw_content: str
    recipient_id: Optional[int] = None
    forwarded_message_id: Optional[int] = None
    approval_state: ApprovalState = ApprovalState.PENDING

    @property
    def is_external(self) -> bool:
        return self.recipient_id is not None


def quote(text: str) -> str:
    lines = text.splitlines() or [""]
    return "\n".join(f"> {line}" for line in lines)


def outcome_message(approved: bool) -> str:
    return f"This request has been **{'approved' if approved else 'rejected'}**."


def committee_message(requester: discord.abc.User, content: str,
                      recipient: Optional[discord.abc.User] = None) -> str:
    header = f"Received request from {requester.mention}"
    if recipient is not None:
        header += f" to forward message to {recipient.mention}"
        footer = ("Use the reactions below to approve or deny this request. "
                  "Reply to this message after voting to send a response.")
    else:
        footer = "Reply to this message to send a response."
    return f"{header}:\n{quote(content)}\n\n{footer}"


def confirmation_message(committee: Committee, external: bool) -> str:
    name = discord.utils.escape_markdown(committee.name)
    return f"Your message has been forwarded to **{name}**{' for approval' if external else ''}."


def relayed_message(kind: str, author: discord.abc.User, content: str) -> str:
    return f"Received {kind} from {author.mention}:\n{quote(content)}"


class RelayWorkflow:
    """
    Runs one relay request to completion.

    ``arguments`` is the raw text after the command name. It is only parsed
    once the requester is authorized; the sanitized payload is then shown
    verbatim to both the committee and the recipient.
    """

    def __init__(self, bot: commands.Bot, config: Configuration, ctx: commands.Context, arguments: str,
                 timeout: Optional[float] = None):
        self.bot = bot
        self.config = config
        self.ctx = ctx
        self.arguments = arguments
        self.content: Optional[str] = None
        self.recipient: Optional[discord.User] = None
        self.timeout = timeout if timeout is not None else constants.REACTION_TIMEOUT
        self.state = WorkflowState.AUTHORIZING
        self.request: Optional[RelayRequest] = None

    def _transition(self, state: WorkflowState):
        logger.debug("Relay %s: %s -> %s", self.ctx.message.id, self.state.value, state.value)
        self.state = state

    def describe(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {"state": self.state.value, "requester_id": self.ctx.author.id}
        if self.request is not None:
            info.update(
                committee=self.request.committee.name,
                external=self.request.is_external,
                approval=self.request.approval_state.value,
                forwarded_message_id=self.request.forwarded_message_id,
            )
        return info

    async def run(self) -> Optional[RelayRequest]:
        try:
            _, committee = await authorize(self.bot, self.config, self.ctx.author.id)
        except AuthorizationError as e:
            logger.info("Refused relay request from %s: %s", self.ctx.author.id, e.user_message)
            self._transition(WorkflowState.FAILED)
            await self.ctx.send(e.user_message)
            return None

        self._transition(WorkflowState.FORWARDING)
        self.recipient, raw_content, self.content = await parse_arguments(self.ctx, self.arguments)
        self.request = RelayRequest(
            requester_id=self.ctx.author.id,
            committee=committee,
            raw_content=raw_content,
            recipient_id=self.recipient.id if self.recipient is not None else None,
        )
        forwarded = await self._forward()

        if self.request.is_external:
            self._transition(WorkflowState.VOTING)
            await self._vote(forwarded)

        self._transition(WorkflowState.RESOLVED)
        if self.request.approval_state is ApprovalState.APPROVED:
            await self.recipient.send(relayed_message("message", self.ctx.author, self.content))
            logger.info("Delivered relay %s to %s", forwarded.id, self.recipient.id)

        self._transition(WorkflowState.REPLY_RELAY)
        await self._relay_replies(forwarded)

        self._transition(WorkflowState.CLOSED)
        return self.request

    async def _committee_channel(self) -> discord.abc.Messageable:
        channel_id = self.request.committee.channel_id
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel

    async def _forward(self) -> discord.Message:
        external = self.request.is_external
        async with self.ctx.typing():
            channel = await self._committee_channel()
            forwarded = await channel.send(committee_message(self.ctx.author, self.content, self.recipient))
            self.request.forwarded_message_id = forwarded.id

            if external:
                await forwarded.add_reaction(constants.POSITIVE_REACTION)
                await forwarded.add_reaction(constants.NEGATIVE_REACTION)

            await self.ctx.reply(confirmation_message(self.request.committee, external))

        logger.info("Forwarded request from %s to committee %s (message %s, external=%s)",
                    self.ctx.author.id, self.request.committee.name, forwarded.id, external)
        return forwarded

    async def _vote(self, forwarded: discord.Message):
        def check(payload: discord.RawReactionActionEvent) -> bool:
            return payload.message_id == forwarded.id and payload.user_id != self.bot.user.id

        try:
            payload = await self.bot.wait_for("raw_reaction_add", check=check, timeout=self.timeout)
        except asyncio.TimeoutError:
            self.request.approval_state = ApprovalState.TIMED_OUT
            await forwarded.reply(constants.NO_CONSENSUS_MESSAGE)
        else:
            emoji = str(payload.emoji)
            if emoji == constants.POSITIVE_REACTION:
                self.request.approval_state = ApprovalState.APPROVED
                await forwarded.reply(outcome_message(True))
            elif emoji == constants.NEGATIVE_REACTION:
                self.request.approval_state = ApprovalState.REJECTED
                await forwarded.reply(outcome_message(False))
            else:
                self.request.approval_state = ApprovalState.REJECTED
                await forwarded.reply(constants.INVALID_REACTION_MESSAGE)

        approved = self.request.approval_state is ApprovalState.APPROVED
        logger.info("Relay %s vote finished: %s", forwarded.id, self.request.approval_state.value)
        await self.ctx.reply(outcome_message(approved))

    async def _relay_replies(self, forwarded: discord.Message):
        relayed = 0
        async with ReplyStream(self.bot, self.request.committee.channel_id, forwarded.id, self.timeout) as replies:
            async for reply in replies:
                await self.ctx.send(relayed_message("reply", reply.author, reply.clean_content))
                await reply.add_reaction(constants.SENT_REACTION)
                relayed += 1
        logger.debug("Relay %s closed after %d replies", forwarded.id, relayed)
