"""Client address extraction for audit records."""

from typing import Optional
from fastapi import Request


def get_client_ip(request: Request) -> str:
    """
    Best-effort client IP for the audit trail.

    Order of precedence:
    1. X-Forwarded-For (first entry, the original client)
    2. X-Real-IP
    3. The socket peer

    Proxy headers are taken at face value, so the value is informational only
    and must never drive an authorization decision.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")
