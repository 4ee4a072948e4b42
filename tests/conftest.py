# Test configuration
import asyncio
import os
import sys

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Test environment variables
os.environ['TESTING'] = 'true'
os.environ['DISCORD_TOKEN'] = 'test_token_for_testing'
os.environ['LOG_FILE'] = 'none'

import pytest
import discord
from unittest.mock import AsyncMock, MagicMock

from utils.config import Committee, Configuration

GUILD_ID = 900000000000000001
DELEGATE_ROLE_ID = 100000000000000001
STAFF_ROLE_ID = 100000000000000002
CHAIR_ROLE_ID = 100000000000000003
LEGAL_ROLE_ID = 200000000000000001
LEGAL_CHANNEL_ID = 300000000000000001
FINANCE_ROLE_ID = 200000000000000002
FINANCE_CHANNEL_ID = 300000000000000002
BOT_USER_ID = 400000000000000000
REQUESTER_ID = 500000000000000001
RECIPIENT_ID = 500000000000000002
FORWARDED_MESSAGE_ID = 600000000000000001


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


def make_http_error(cls=discord.NotFound, status=404, text="Unknown Member"):
    response = MagicMock(status=status, reason="error")
    return cls(response, text)


def make_member(*role_ids, member_id=REQUESTER_ID):
    member = MagicMock()
    member.id = member_id
    member.mention = f"<@{member_id}>"
    member.roles = [MagicMock(id=role_id) for role_id in role_ids]
    member.add_roles = AsyncMock()
    member.remove_roles = AsyncMock()
    return member


def make_reply(content, reference_id=FORWARDED_MESSAGE_ID, channel_id=LEGAL_CHANNEL_ID, author_id=700000000000000001,
               raw_content=None):
    reply = MagicMock()
    reply.channel.id = channel_id
    reply.author.id = author_id
    reply.author.mention = f"<@{author_id}>"
    reply.reference = MagicMock(message_id=reference_id) if reference_id is not None else None
    reply.content = content if raw_content is None else raw_content
    reply.clean_content = content
    reply.add_reaction = AsyncMock()
    return reply


def make_reaction(emoji, user_id=700000000000000001, message_id=FORWARDED_MESSAGE_ID):
    return MagicMock(emoji=emoji, user_id=user_id, message_id=message_id)


class FakeBot:
    """
    Stands in for commands.Bot in workflow tests.

    ``reactions`` are offered to ``wait_for`` checks in order; when none match,
    ``wait_for`` times out. ``pending_replies`` are dispatched to every
    ``on_message`` listener as soon as it is added.
    """

    def __init__(self, config):
        self.config = config
        self.user = MagicMock(id=BOT_USER_ID)
        self.guild = MagicMock(id=config.guild_id)
        self.guild.fetch_member = AsyncMock(return_value=make_member(DELEGATE_ROLE_ID, LEGAL_ROLE_ID))
        self.users = {}
        self.channels = {}
        self.listeners = {}
        self.reactions = []
        self.pending_replies = []
        self.wait_for_calls = []

    def get_guild(self, guild_id):
        return self.guild if guild_id == self.guild.id else None

    async def fetch_guild(self, guild_id):
        raise make_http_error(text="Unknown Guild")

    def get_user(self, user_id):
        return self.users.get(user_id)

    async def fetch_user(self, user_id):
        raise make_http_error(text="Unknown User")

    def get_channel(self, channel_id):
        return self.channels.get(channel_id)

    async def fetch_channel(self, channel_id):
        raise make_http_error(text="Unknown Channel")

    async def wait_for(self, event, *, check=None, timeout=None):
        self.wait_for_calls.append((event, timeout))
        for payload in self.reactions:
            if check is None or check(payload):
                return payload
        raise asyncio.TimeoutError()

    def add_listener(self, func, name):
        self.listeners.setdefault(name, []).append(func)
        loop = asyncio.get_running_loop()
        for message in self.pending_replies:
            loop.create_task(func(message))

    def remove_listener(self, func, name):
        self.listeners[name].remove(func)


@pytest.fixture
def config():
    """Fixture with two committees, Legal first"""
    return Configuration(
        token="test_token_for_testing",
        guild_id=GUILD_ID,
        delegate_role_id=DELEGATE_ROLE_ID,
        staff_role_id=STAFF_ROLE_ID,
        chair_role_id=CHAIR_ROLE_ID,
        committees=(
            Committee(name="Legal", role_id=LEGAL_ROLE_ID, channel_id=LEGAL_CHANNEL_ID),
            Committee(name="Finance", role_id=FINANCE_ROLE_ID, channel_id=FINANCE_CHANNEL_ID),
        ),
    )


@pytest.fixture
def forwarded_message():
    message = MagicMock()
    message.id = FORWARDED_MESSAGE_ID
    message.add_reaction = AsyncMock()
    message.reply = AsyncMock()
    return message


@pytest.fixture
def fake_bot(config, forwarded_message, recipient):
    bot = FakeBot(config)
    bot.users[recipient.id] = recipient
    for channel_id in (LEGAL_CHANNEL_ID, FINANCE_CHANNEL_ID):
        channel = MagicMock(id=channel_id)
        channel.send = AsyncMock(return_value=forwarded_message)
        bot.channels[channel_id] = channel
    return bot


@pytest.fixture
def mock_ctx():
    """Fixture for mocking a command context"""
    ctx = MagicMock()
    ctx.author.id = REQUESTER_ID
    ctx.author.mention = f"<@{REQUESTER_ID}>"
    ctx.message.id = 800000000000000001
    ctx.message.add_reaction = AsyncMock()
    ctx.send = AsyncMock()
    ctx.reply = AsyncMock()
    return ctx


@pytest.fixture
def recipient():
    user = MagicMock()
    user.id = RECIPIENT_ID
    user.mention = f"<@{RECIPIENT_ID}>"
    user.send = AsyncMock()
    return user
