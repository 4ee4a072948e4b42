# main.py

import os
import sys
import asyncio
from dotenv import load_dotenv
import discord
from discord.ext import commands
import uvicorn

# The 'as dashboard_app' alias is used to avoid name conflicts.
from dashboard.app import app as dashboard_app
from utils.config import Configuration, ConfigError, load_config
from utils.logging_setup import setup_logging, get_logger

# --- Configuration ---
# Load environment variables from a .env file
load_dotenv()
logger = get_logger(__name__)

COGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "cogs")


def get_prefix(bot: commands.Bot, message: discord.Message):
    """Commands are addressed by mentioning the bot; in DMs no prefix is needed."""
    if message.guild is None:
        return commands.when_mentioned_or("")(bot, message)
    return commands.when_mentioned(bot, message)


# --- Custom Bot Class ---
class CombinedBot(commands.Bot):
    """
    The relay bot, optionally serving the status dashboard from the same process.
    """
    def __init__(self, config: Configuration, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config
        self.web_server_task = None
        self.uvicorn_server = None

    async def setup_hook(self):
        """
        Called by discord.py after login but before connecting to the gateway.
        """
        # --- 1. Load Cogs ---
        for folder in sorted(os.listdir(COGS_DIR)):
            if os.path.isfile(os.path.join(COGS_DIR, folder, "cog.py")):
                cog_path = f"cogs.{folder}.cog"
                await self.load_extension(cog_path)
                logger.info("Loaded cog from %s", cog_path)

        # --- 2. Start the dashboard ---
        if os.getenv("DASHBOARD_ENABLED", "true").strip().lower() in {"0", "false", "no"}:
            logger.info("Dashboard disabled.")
            return

        # Routes reach the bot through 'request.app.state.bot'.
        dashboard_app.state.bot = self
        host = os.getenv("DASHBOARD_HOST", "0.0.0.0")
        port = int(os.getenv("DASHBOARD_PORT", "8000"))
        config = uvicorn.Config(dashboard_app, host=host, port=port, log_level="info", log_config=None)
        self.uvicorn_server = uvicorn.Server(config)
        self.web_server_task = asyncio.create_task(self.uvicorn_server.serve())
        logger.info("Dashboard started on http://%s:%s", host, port)

    async def on_ready(self):
        logger.info("Logged in as: %s (ID: %s)", self.user.name, self.user.id)
        logger.info("Discord.py Version: %s", discord.__version__)

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.UserInputError):
            await ctx.reply(f"Usage: `{ctx.clean_prefix}{ctx.command.qualified_name} {ctx.command.signature}`")
            return
        original = getattr(error, "original", error)
        logger.error("Command %s failed", ctx.command, exc_info=(type(original), original, original.__traceback__))

    async def close(self):
        """
        Shut down the dashboard, then the bot.
        """
        if self.uvicorn_server:
            self.uvicorn_server.should_exit = True
            if self.web_server_task:
                await asyncio.wait([self.web_server_task], timeout=5.0)

        await super().close()
        logger.info("Bot and dashboard have been closed.")


def main():
    setup_logging()
    try:
        config = load_config()
    except ConfigError as e:
        logger.critical("Cannot start: %s", e)
        sys.exit(1)

    intents = discord.Intents.default()
    intents.message_content = True  # text commands and relayed replies
    intents.members = True

    bot = CombinedBot(config, command_prefix=get_prefix, intents=intents)
    try:
        # Logging is already configured, so discord.py must not install its own handler
        bot.run(config.token, log_handler=None)
    except discord.LoginFailure as e:
        logger.critical("Cannot log in: %s", e)
        sys.exit(1)


# --- Main Execution Block ---
if __name__ == "__main__":
    main()
