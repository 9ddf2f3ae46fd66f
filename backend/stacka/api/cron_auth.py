import secrets

from fastapi import Request


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def is_cron_request_authorized(request: Request, app_settings) -> bool:
    """Scheduler calls must present ``Bearer <CRON_SECRET>`` in prod; dev is open."""
    if app_settings.app_env != "prod":
        return True
    expected = app_settings.cron_secret
    provided = _bearer_token(request)
    if not expected or not provided:
        return False
    return secrets.compare_digest(provided, expected)
