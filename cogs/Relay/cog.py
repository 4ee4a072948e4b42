# cogs/Relay/cog.py
from typing import Dict

from discord.ext import commands

from .workflow import RelayWorkflow


class Relay(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.active_requests: Dict[int, RelayWorkflow] = {}  # command message id -> workflow

    @commands.command(name="forward", usage="[@recipient] <message>")
    async def forward(self, ctx: commands.Context, *, arguments: str = ""):
        """Forward a message to your committee, optionally asking them to pass it on to someone."""
        # Arguments are parsed by the workflow once the requester is authorized
        workflow = RelayWorkflow(self.bot, self.bot.config, ctx, arguments)
        self.active_requests[ctx.message.id] = workflow
        try:
            await workflow.run()
        finally:
            self.active_requests.pop(ctx.message.id, None)


# Cog setup
async def setup(bot):
    await bot.add_cog(Relay(bot))
