from uuid import uuid4

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from adops.core import context

MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware:
    """Seed the logging context vars for each HTTP request and echo X-Request-ID back."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context.clear_context()
        headers = Headers(scope=scope)
        request_id = headers.get("x-request-id", "")[:MAX_REQUEST_ID_LENGTH] or uuid4().hex
        context.set_request_id(request_id)
        # The account dependency overwrites this once the membership is resolved.
        account_header = headers.get("x-account-id", "")
        if account_header.isdigit():
            context.set_account_id(account_header)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)["x-request-id"] = request_id
            await send(message)

        await self.app(scope, receive, send_with_request_id)
