"""HTTP adapter – httpx transports for HTTP/1.1 and multiplexed HTTP/2."""
from fire_admin.adapters.http.client import AuthorizedHttpClient, HttpClient
from fire_admin.adapters.http.http2 import AuthorizedHttp2Client, Http2SessionHandler
from fire_admin.adapters.http.response import HttpRequest, HttpResponse, RequestResponseError

__all__ = [
    "AuthorizedHttp2Client",
    "AuthorizedHttpClient",
    "Http2SessionHandler",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "RequestResponseError",
]
