import secrets

from fastapi import Request

SESSION_HEADER = "x-session-id"
SESSION_COOKIE = "ai_session_id"


def session_id_for(request: Request) -> str:
    """Reuse the caller's session id from header or cookie, or mint a new one."""
    existing = request.headers.get(SESSION_HEADER) or request.cookies.get(SESSION_COOKIE)
    if existing:
        return existing
    return secrets.token_hex(16)


def client_ip_for(request: Request) -> str | None:
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client is not None:
        return request.client.host
    return None
