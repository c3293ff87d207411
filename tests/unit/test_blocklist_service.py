"""Tests for the remote package blocklist."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from herald.models.config import BlocklistConfig
from herald.services.blocklist_service import Blocklist

BLOCKLIST_URL = "http://gulpjs.com/plugins/blackList.json"


def _session_returning(status=200, body=None, get_side_effect=None):
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=body)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if get_side_effect is not None:
        mock_session.get = MagicMock(side_effect=get_side_effect)
    else:
        mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestBlocklist:
    """Tests for the Blocklist value."""

    def test_membership(self):
        blocklist = Blocklist(["gulp-bad", "gulp-worse"])
        assert "gulp-bad" in blocklist
        assert blocklist.is_blocked("gulp-worse")
        assert not blocklist.is_blocked("gulp-good")
        assert len(blocklist) == 2
        assert blocklist.names == ["gulp-bad", "gulp-worse"]

    def test_non_string_entries_dropped(self):
        assert len(Blocklist(["ok", 3, None])) == 1  # type: ignore[list-item]

    def test_empty(self):
        assert len(Blocklist.empty()) == 0


class TestBlocklistLoad:
    """Tests for Blocklist.load."""

    @pytest.mark.asyncio
    async def test_no_url_returns_empty(self):
        with patch("aiohttp.ClientSession") as session_cls:
            blocklist = await Blocklist.load(BlocklistConfig())

        assert len(blocklist) == 0
        session_cls.assert_not_called()

    def test_unreplaced_placeholder_treated_as_unset(self):
        config = BlocklistConfig(url="${HERALD_BLOCKLIST_URL}")
        assert config.url is None

    @pytest.mark.asyncio
    async def test_loads_object_keys(self):
        body = {"gulp-bad": "duplicate of gulp-good", "gulp-worse": "not a plugin"}
        session = _session_returning(body=body)

        with patch("aiohttp.ClientSession", return_value=session):
            blocklist = await Blocklist.load(BlocklistConfig(url=BLOCKLIST_URL))

        assert blocklist.names == ["gulp-bad", "gulp-worse"]
        assert blocklist.source == BLOCKLIST_URL

    @pytest.mark.asyncio
    async def test_loads_list(self):
        session = _session_returning(body=["a", "b"])

        with patch("aiohttp.ClientSession", return_value=session):
            blocklist = await Blocklist.load(BlocklistConfig(url=BLOCKLIST_URL))

        assert blocklist.names == ["a", "b"]

    @pytest.mark.asyncio
    async def test_non_200_returns_empty(self):
        session = _session_returning(status=404)

        with patch("aiohttp.ClientSession", return_value=session):
            blocklist = await Blocklist.load(BlocklistConfig(url=BLOCKLIST_URL))

        assert len(blocklist) == 0

    @pytest.mark.asyncio
    async def test_unexpected_shape_returns_empty(self):
        session = _session_returning(body="nope")

        with patch("aiohttp.ClientSession", return_value=session):
            blocklist = await Blocklist.load(BlocklistConfig(url=BLOCKLIST_URL))

        assert len(blocklist) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [asyncio.TimeoutError(), aiohttp.ClientConnectionError("refused")]
    )
    async def test_fetch_failure_returns_empty(self, error):
        session = _session_returning(get_side_effect=error)

        with patch("aiohttp.ClientSession", return_value=session):
            blocklist = await Blocklist.load(BlocklistConfig(url=BLOCKLIST_URL))

        assert len(blocklist) == 0
