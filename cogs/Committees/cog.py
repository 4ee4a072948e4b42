# cogs/Committees/cog.py
from typing import List, Optional, Tuple

import discord
from discord.ext import commands

from utils.config import Committee, Configuration
from utils.logging_setup import get_logger
from . import constants

logger = get_logger(__name__)


def resolve_committee(config: Configuration, guild: discord.Guild, query: str) -> Optional[Committee]:
    """Find the committee named by ``query`` (committee name or role name, any case)."""
    for committee in config.committees:
        role = guild.get_role(committee.role_id)
        if committee.matches(query, role.name if role is not None else None):
            return committee
    return None


def plan_role_changes(config: Configuration, committee: Committee, role_ids) -> Tuple[List[int], List[int]]:
    """
    Return (to_remove, to_add) for moving a member with ``role_ids`` onto ``committee``.

    Every other committee role held is removed, and the committee role and the
    delegate role are added when missing.
    """
    role_ids = set(role_ids)
    to_remove = [rid for rid in config.committee_role_ids
                 if rid in role_ids and rid != committee.role_id]
    to_add = [rid for rid in (committee.role_id, config.delegate_role_id) if rid not in role_ids]
    return to_remove, to_add


class Committees(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.command(name="join")
    async def join(self, ctx: commands.Context, *, name: str):
        """Join a committee by its name or by its role's name."""
        config = self.bot.config
        if ctx.guild is None or ctx.guild.id != config.guild_id:
            await ctx.send(constants.WRONG_GUILD_MESSAGE)
            return

        committee = resolve_committee(config, ctx.guild, name)
        if committee is None:
            await ctx.reply(constants.UNKNOWN_COMMITTEE_NAME_MESSAGE)
            return

        member = ctx.guild.get_member(ctx.author.id) or await ctx.guild.fetch_member(ctx.author.id)
        to_remove, to_add = plan_role_changes(config, committee, (role.id for role in member.roles))

        reason = f"Joined committee {committee.name}"
        # Non-atomic edits rebuild the role list from this member object, which the removal leaves stale
        if to_remove:
            await member.remove_roles(*(discord.Object(id=rid) for rid in to_remove), reason=reason, atomic=True)
        if to_add:
            await member.add_roles(*(discord.Object(id=rid) for rid in to_add), reason=reason, atomic=True)

        logger.info("%s joined committee %s (removed %s, added %s)",
                    ctx.author.id, committee.name, to_remove, to_add)
        await ctx.message.add_reaction(constants.POSITIVE_REACTION)


async def setup(bot):
    await bot.add_cog(Committees(bot))
