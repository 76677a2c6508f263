"""
Tests for the draft event stream server using aiohttp's test client
"""
import asyncio

import pytest
from aiohttp.test_utils import TestClient, TestServer

from api.draft_stream import DraftStreamServer, STREAM_HEADERS, format_event
from services.pick_broadcast_service import PickBroadcaster


async def wait_for_subscriber(broadcaster: PickBroadcaster, session_id: str) -> None:
    for _ in range(100):
        if broadcaster.subscriber_count(session_id):
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"no subscriber joined {session_id}")


async def read_event(response) -> bytes:
    data = await asyncio.wait_for(response.content.readline(), 1)
    blank = await asyncio.wait_for(response.content.readline(), 1)
    assert blank == b"\n"
    return data


async def open_stream(client, broadcaster: PickBroadcaster, session_id: str, path: str, **kwargs):
    """Connect, then publish a first pick so the response headers are flushed."""
    request = asyncio.ensure_future(client.get(path, **kwargs))
    await wait_for_subscriber(broadcaster, session_id)
    await broadcaster.publish(session_id, {'card_name': 'Opening Pick'})
    response = await asyncio.wait_for(request, 1)
    assert await read_event(response) == b'data: {"card_name": "Opening Pick"}\n'
    return response


def test_format_event():
    assert format_event({'card_name': 'Opt', 'cmc': 1}) == b'data: {"card_name": "Opt", "cmc": 1}\n\n'


class TestDraftStream:

    @pytest.fixture
    def broadcaster(self):
        return PickBroadcaster()

    @pytest.fixture
    def server(self, broadcaster):
        return DraftStreamServer(broadcaster=broadcaster, host="127.0.0.1", port=0)

    @pytest.mark.asyncio
    async def test_forwards_picks_verbatim(self, server, broadcaster):
        async with TestClient(TestServer(server.build_app())) as client:
            response = await open_stream(client, broadcaster, 'session-1', '/api/draft-stream/session-1')

            assert response.status == 200
            assert response.headers['Content-Type'].startswith(STREAM_HEADERS['Content-Type'])
            assert response.headers['Cache-Control'] == STREAM_HEADERS['Cache-Control']

            await broadcaster.publish('session-1', {'card_name': 'Lightning Bolt', 'team_id': 'team-a'})
            await broadcaster.publish('session-2', {'card_name': 'Elsewhere'})
            await broadcaster.publish('session-1', {'card_name': 'Counterspell', 'team_id': 'team-b'})

            assert await read_event(response) == b'data: {"card_name": "Lightning Bolt", "team_id": "team-a"}\n'
            assert await read_event(response) == b'data: {"card_name": "Counterspell", "team_id": "team-b"}\n'
            response.close()

    @pytest.mark.asyncio
    async def test_session_id_from_query(self, server, broadcaster):
        async with TestClient(TestServer(server.build_app())) as client:
            response = await open_stream(client, broadcaster, 'session-9', '/api/draft-stream',
                                         params={'draftId': 'session-9'})

            assert response.status == 200
            response.close()

    @pytest.mark.asyncio
    async def test_missing_draft_id(self, server):
        async with TestClient(TestServer(server.build_app())) as client:
            response = await client.get('/api/draft-stream')

            assert response.status == 400
            assert await response.text() == "Missing draft ID"

    @pytest.mark.asyncio
    async def test_disconnect_unsubscribes(self, server, broadcaster):
        async with TestClient(TestServer(server.build_app())) as client:
            response = await open_stream(client, broadcaster, 'session-1', '/api/draft-stream/session-1')

            response.close()
            for _ in range(100):
                # Writing to a dropped connection ends the handler
                await broadcaster.publish('session-1', {'ping': True})
                if not broadcaster.subscriber_count('session-1'):
                    break
                await asyncio.sleep(0.01)

            assert broadcaster.subscriber_count('session-1') == 0
