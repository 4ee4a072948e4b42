# cogs/Relay/collectors.py
import asyncio

import discord
from discord.ext import commands

from utils.logging_setup import get_logger

logger = get_logger(__name__)


class ReplyStream:
    """
    Async iterator over the replies to one message, open for a fixed window.

    Matching messages are queued by an ``on_message`` listener from the moment
    the stream is opened, so nothing is missed while the consumer is busy with
    an earlier reply. Iteration stops once the window has elapsed; the listener
    is removed when the stream is closed.

        async with ReplyStream(bot, channel_id, message_id, timeout) as replies:
            async for reply in replies:
                ...
    """

    def __init__(self, bot: commands.Bot, channel_id: int, message_id: int, timeout: float):
        self.bot = bot
        self.channel_id = channel_id
        self.message_id = message_id
        self.timeout = timeout
        self._queue: "asyncio.Queue[discord.Message]" = asyncio.Queue()
        self._deadline = None
        self._listening = False

    def is_reply(self, message: discord.Message) -> bool:
        if message.channel.id != self.channel_id:
            return False
        if self.bot.user is not None and message.author.id == self.bot.user.id:
            return False
        reference = message.reference
        return reference is not None and reference.message_id == self.message_id

    async def _on_message(self, message: discord.Message):
        if self.is_reply(message):
            self._queue.put_nowait(message)

    def open(self):
        self._deadline = asyncio.get_running_loop().time() + self.timeout
        self.bot.add_listener(self._on_message, "on_message")
        self._listening = True
        logger.debug("Listening for replies to message %s for %ss", self.message_id, self.timeout)

    def close(self):
        if self._listening:
            self.bot.remove_listener(self._on_message, "on_message")
            self._listening = False
            logger.debug("Stopped listening for replies to message %s", self.message_id)

    async def __aenter__(self) -> "ReplyStream":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def __aiter__(self) -> "ReplyStream":
        return self

    async def __anext__(self) -> discord.Message:
        if self._deadline is None:
            raise RuntimeError("ReplyStream must be opened before iterating")
        remaining = self._deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise StopAsyncIteration
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=remaining)
        except asyncio.TimeoutError:
            raise StopAsyncIteration from None
