# cogs/Relay/authorization.py
"""
Who may forward a message, and to which committee.

A requester must be a member of the configured guild, hold the delegate role
and hold the role of at least one committee. When several committee roles are
held, the first committee in configuration order wins.
"""
from typing import Iterable, Optional, Tuple

import discord

from utils.config import Committee, Configuration
from . import constants


class AuthorizationError(Exception):
    """Base class for failures that are reported back to the requester."""

    user_message = "You are not allowed to do that."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class Unacquainted(AuthorizationError):
    user_message = constants.UNACQUAINTED_MESSAGE


class NotDelegate(AuthorizationError):
    user_message = constants.DELEGATE_ONLY_MESSAGE


class UnknownCommittee(AuthorizationError):
    user_message = constants.UNKNOWN_COMMITTEE_MESSAGE


def find_committee(config: Configuration, role_ids: Iterable[int]) -> Optional[Committee]:
    role_ids = set(role_ids)
    for committee in config.committees:
        if committee.role_id in role_ids:
            return committee
    return None


def check_roles(config: Configuration, role_ids: Iterable[int]) -> Committee:
    """Return the requester's committee or raise the matching AuthorizationError."""
    role_ids = set(role_ids)
    if config.delegate_role_id not in role_ids:
        raise NotDelegate()
    committee = find_committee(config, role_ids)
    if committee is None:
        raise UnknownCommittee()
    return committee


async def resolve_member(bot: discord.Client, config: Configuration, user_id: int) -> discord.Member:
    """Fetch the user as a member of the configured guild."""
    try:
        guild = bot.get_guild(config.guild_id)
        if guild is None:
            guild = await bot.fetch_guild(config.guild_id)
        return await guild.fetch_member(user_id)
    except (discord.NotFound, discord.Forbidden):
        raise Unacquainted() from None


async def authorize(bot: discord.Client, config: Configuration, user_id: int) -> Tuple[discord.Member, Committee]:
    member = await resolve_member(bot, config, user_id)
    committee = check_roles(config, (role.id for role in member.roles))
    return member, committee
