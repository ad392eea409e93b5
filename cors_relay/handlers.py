"""HTTP request handler for the CORS relay."""

from collections.abc import AsyncIterator

import aiohttp
from aiohttp import web

from .config import Settings
from .errors import RelayError, UpstreamFailure
from .headers import (
    BODYLESS_METHODS,
    build_relayed_headers,
    build_upstream_headers,
    cors_headers,
    decode_extra_headers,
)
from .logging import get_logger
from .models import ErrorBody, Target
from .target import check_host, parse_target

logger = get_logger(__name__)


class RelayHandler:
    """
    Forwards a request to the target named by ``?url=`` and streams the
    response back with cross-origin headers attached.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._allowed_hosts = settings.allowed_hosts
        self._session: aiohttp.ClientSession | None = None

    async def client_session_ctx(self, app: web.Application) -> AsyncIterator[None]:
        """Own the upstream ClientSession for the lifetime of ``app``."""
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(
                total=None,
                sock_connect=self.settings.request_timeout,
                sock_read=self.settings.request_timeout,
            ),
            cookie_jar=aiohttp.DummyCookieJar(),
            auto_decompress=False,
        )
        logger.info(f"Upstream session opened (idle timeout {self.settings.request_timeout}s)")

        yield

        await self._session.close()
        self._session = None
        logger.info("Upstream session closed")

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("Upstream session is not initialized")
        return self._session

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Public entry point used by the aiohttp router."""
        origin = request.headers.get("Origin")

        if request.method == "OPTIONS":
            return web.Response(status=204, headers=cors_headers(origin))

        try:
            target = parse_target(request.query.get("url"))
            check_host(target, self._allowed_hosts)
            return await self._relay(request, target, origin)
        except UpstreamFailure as exc:
            return self._error_response(exc, origin)
        except RelayError as exc:
            logger.warning(f"Rejected {request.method}: {exc.message}")
            return self._error_response(exc, origin)

    async def _relay(self, request: web.Request, target: Target, origin: str | None) -> web.StreamResponse:
        """Issue the outbound request and stream its response to the caller."""
        extra_headers = decode_extra_headers(request.query.get("h64"))
        headers = build_upstream_headers(
            request.headers,
            extra_headers,
            method=request.method,
            default_user_agent=self.settings.default_user_agent,
        )

        data = None
        if request.method not in BODYLESS_METHODS and request.body_exists:
            data = request.content

        logger.info(f"Relaying {request.method} to {target.host}")

        try:
            upstream = await self._get_session().request(
                request.method,
                target.url,
                headers=headers,
                data=data,
            )
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            # ValueError: header names or values aiohttp refuses to serialize
            logger.warning(f"{request.method} to {target.host} failed upstream: {exc!r}")
            raise UpstreamFailure(detail=str(exc) or type(exc).__name__) from exc

        async with upstream:
            return await self._stream_response(request, upstream, target, origin)

    async def _stream_response(
        self,
        request: web.Request,
        upstream: aiohttp.ClientResponse,
        target: Target,
        origin: str | None,
    ) -> web.StreamResponse:
        """
        Copy status, filtered headers and body of ``upstream`` to the caller.

        Once the response is prepared the status line is committed; a failure
        while copying the body aborts the caller's connection instead of
        producing an error response.
        """
        response = web.StreamResponse(
            status=upstream.status,
            reason=upstream.reason,
            headers=build_relayed_headers(upstream.headers, origin),
        )
        await response.prepare(request)

        try:
            async for chunk in upstream.content.iter_chunked(self.settings.chunk_size):
                await response.write(chunk)
        except (aiohttp.ClientError, TimeoutError, ConnectionError) as exc:
            logger.warning(f"Stream from {target.host} aborted: {exc!r}")
            upstream.close()
            if request.transport is not None:
                request.transport.abort()
            return response

        await response.write_eof()
        logger.info(f"Relayed {upstream.status} from {target.host}")
        return response

    def _error_response(self, exc: RelayError, origin: str | None) -> web.Response:
        body = ErrorBody(error=exc.message, detail=exc.detail)
        return web.json_response(
            body.model_dump(exclude_none=True),
            status=exc.status,
            headers=cors_headers(origin),
        )
