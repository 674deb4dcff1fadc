"""Client address helpers."""

from fastapi import Request

from portfolio_chatbot.models.chat import ClientInfo

_LOOPBACK_V6 = "::1"


def _normalise(ip: str) -> str:
    ip = ip.strip()
    return "127.0.0.1" if ip == _LOOPBACK_V6 else ip


def client_ip(request: Request) -> str | None:
    """Return the caller's address, honouring common proxy headers.

    ``X-Forwarded-For`` may list several hops; the first is the client.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0]
        if first.strip():
            return _normalise(first)

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return _normalise(value)

    if request.client is not None and request.client.host:
        return _normalise(request.client.host)
    return None


def client_info(request: Request) -> ClientInfo:
    """Collect the metadata stored on a new chat session."""
    return ClientInfo(
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
