import discord
import pytest
from unittest.mock import AsyncMock, MagicMock

from cogs.Relay import constants
from cogs.Relay.authorization import (
    NotDelegate, Unacquainted, UnknownCommittee, authorize, check_roles, find_committee, resolve_member,
)
from conftest import (
    DELEGATE_ROLE_ID, FINANCE_ROLE_ID, GUILD_ID, LEGAL_ROLE_ID, REQUESTER_ID, STAFF_ROLE_ID,
    make_http_error, make_member,
)


class TestCheckRoles:
    def test_each_committee_resolves_deterministically(self, config):
        for committee in config.committees:
            for _ in range(3):
                assert check_roles(config, {committee.role_id, DELEGATE_ROLE_ID}) is committee

    def test_first_configured_committee_wins(self, config):
        committee = check_roles(config, [FINANCE_ROLE_ID, LEGAL_ROLE_ID, DELEGATE_ROLE_ID])
        assert committee.name == "Legal"

    def test_delegate_role_required(self, config):
        with pytest.raises(NotDelegate) as excinfo:
            check_roles(config, {LEGAL_ROLE_ID, STAFF_ROLE_ID})
        assert excinfo.value.user_message == constants.DELEGATE_ONLY_MESSAGE

    def test_delegate_is_checked_before_committee(self, config):
        with pytest.raises(NotDelegate):
            check_roles(config, set())

    def test_committee_role_required(self, config):
        with pytest.raises(UnknownCommittee) as excinfo:
            check_roles(config, {DELEGATE_ROLE_ID})
        assert str(excinfo.value) == constants.UNKNOWN_COMMITTEE_MESSAGE

    def test_find_committee_without_match(self, config):
        assert find_committee(config, [STAFF_ROLE_ID]) is None


class TestResolveMember:
    @pytest.mark.asyncio
    async def test_cached_guild(self, config):
        member = make_member(DELEGATE_ROLE_ID)
        guild = MagicMock()
        guild.fetch_member = AsyncMock(return_value=member)
        bot = MagicMock()
        bot.get_guild.return_value = guild

        assert await resolve_member(bot, config, REQUESTER_ID) is member
        bot.get_guild.assert_called_once_with(GUILD_ID)
        guild.fetch_member.assert_awaited_once_with(REQUESTER_ID)

    @pytest.mark.asyncio
    async def test_uncached_guild_is_fetched(self, config):
        guild = MagicMock()
        guild.fetch_member = AsyncMock(return_value=make_member(DELEGATE_ROLE_ID))
        bot = MagicMock()
        bot.get_guild.return_value = None
        bot.fetch_guild = AsyncMock(return_value=guild)

        await resolve_member(bot, config, REQUESTER_ID)
        bot.fetch_guild.assert_awaited_once_with(GUILD_ID)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        make_http_error(),
        make_http_error(discord.Forbidden, 403, "Missing Access"),
    ])
    async def test_unresolvable_member(self, config, error):
        guild = MagicMock()
        guild.fetch_member = AsyncMock(side_effect=error)
        bot = MagicMock()
        bot.get_guild.return_value = guild

        with pytest.raises(Unacquainted) as excinfo:
            await resolve_member(bot, config, REQUESTER_ID)
        assert excinfo.value.user_message == constants.UNACQUAINTED_MESSAGE

    @pytest.mark.asyncio
    async def test_server_errors_propagate(self, config):
        guild = MagicMock()
        guild.fetch_member = AsyncMock(side_effect=make_http_error(discord.HTTPException, 500, "boom"))
        bot = MagicMock()
        bot.get_guild.return_value = guild

        with pytest.raises(discord.HTTPException):
            await resolve_member(bot, config, REQUESTER_ID)

    @pytest.mark.asyncio
    async def test_authorize_returns_member_and_committee(self, config):
        member = make_member(DELEGATE_ROLE_ID, FINANCE_ROLE_ID)
        guild = MagicMock()
        guild.fetch_member = AsyncMock(return_value=member)
        bot = MagicMock()
        bot.get_guild.return_value = guild

        resolved, committee = await authorize(bot, config, REQUESTER_ID)
        assert resolved is member
        assert committee.name == "Finance"
