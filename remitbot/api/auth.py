from fastapi import Header, HTTPException
from remitbot.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    API key for the generic chat endpoint.
    - If API_KEY env is empty: allow all requests.
    - If API_KEY env is set: require matching x-api-key header.
    """
    if not getattr(settings, "API_KEY", ""):
        return
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def require_telegram_secret(
    secret: str = Header(default="", alias="X-Telegram-Bot-Api-Secret-Token"),
):
    """Telegram echoes the secret given to setWebhook on every update."""
    if not settings.TELEGRAM_WEBHOOK_SECRET:
        return
    if secret != settings.TELEGRAM_WEBHOOK_SECRET:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")
