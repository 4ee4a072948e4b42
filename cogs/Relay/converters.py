# cogs/Relay/converters.py
import re
from typing import Optional, Tuple

import discord
from discord.ext import commands

USER_MENTION_RE = re.compile(r"<@!?(\d{15,20})>|(\d{15,20})")


class RecipientConverter(commands.Converter):
    """Accepts a user mention or a raw user ID, nothing else."""

    async def convert(self, ctx: commands.Context, argument: str) -> discord.User:
        match = USER_MENTION_RE.fullmatch(argument)
        if not match:
            raise commands.BadArgument(f"{argument!r} is not a user mention.")
        user_id = int(match.group(1) or match.group(2))
        user = ctx.bot.get_user(user_id)
        if user is None:
            try:
                user = await ctx.bot.fetch_user(user_id)
            except discord.NotFound:
                raise commands.BadArgument(f"Unknown user {argument!r}.") from None
        return user


# User, role and channel mentions become plain names; @everyone/@here are defused
payload_converter = commands.clean_content(fix_channel_mentions=True)


async def parse_arguments(ctx: commands.Context, arguments: str) -> Tuple[Optional[discord.User], str, str]:
    """
    Split ``forward`` arguments into (recipient, raw payload, sanitized payload).

    A leading user mention or ID names the recipient; anything else is
    already part of the payload.
    """
    recipient = None
    payload = arguments.strip()
    parts = payload.split(None, 1)
    if parts:
        try:
            recipient = await RecipientConverter().convert(ctx, parts[0])
        except commands.BadArgument:
            recipient = None
        else:
            payload = parts[1] if len(parts) > 1 else ""
    return recipient, payload, await payload_converter.convert(ctx, payload)
