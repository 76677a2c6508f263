"""
Draft event stream server

Serves `GET /api/draft-stream/{session_id}` as server-sent events. Every
`new_pick` payload published for the session is written verbatim as
`data: <json>\n\n`. The subscription is dropped when the client goes away.
"""
import json
import logging
from typing import Optional

from aiohttp import web

from config import get_config
from services.pick_broadcast_service import PickBroadcaster, get_pick_broadcaster

logger = logging.getLogger(f'{__name__}.DraftStreamServer')

STREAM_HEADERS = {
    'Content-Type': 'text/event-stream',
    'Cache-Control': 'no-cache, no-transform',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',
}


def format_event(payload) -> bytes:
    """Encode one payload as an SSE data frame."""
    return f"data: {json.dumps(payload, default=str)}\n\n".encode('utf-8')


class DraftStreamServer:
    """aiohttp.web application forwarding pick events to browsers."""

    def __init__(self, broadcaster: Optional[PickBroadcaster] = None,
                 host: Optional[str] = None, port: Optional[int] = None):
        config = get_config()
        self._broadcaster = broadcaster
        self.host = host or config.stream_host
        self.port = port if port is not None else config.stream_port
        self._runner: Optional[web.AppRunner] = None

    @property
    def broadcaster(self) -> PickBroadcaster:
        return self._broadcaster or get_pick_broadcaster()

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/api/draft-stream', self.handle_stream)
        app.router.add_get('/api/draft-stream/{session_id}', self.handle_stream)
        return app

    async def handle_stream(self, request: web.Request) -> web.StreamResponse:
        session_id = request.match_info.get('session_id') or request.query.get('draftId')
        if not session_id:
            return web.Response(status=400, text="Missing draft ID")

        response = web.StreamResponse(status=200, headers=STREAM_HEADERS)
        await response.prepare(request)
        logger.info(f"Stream client connected to draft {session_id} from {request.remote}")

        events = self.broadcaster.subscribe(session_id)
        try:
            async for payload in events:
                await response.write(format_event(payload))
        except ConnectionResetError:
            logger.info(f"Stream client disconnected from draft {session_id}")
        finally:
            await events.aclose()

        return response

    async def start(self) -> None:
        """Bind and serve in the running event loop."""
        if self._runner is not None:
            return
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"Draft stream server listening on {self.host}:{self.port}")

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Draft stream server stopped")
