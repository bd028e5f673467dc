from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from remitbot.api.routes import router
from remitbot.api.admin_routes import router as admin_router
from remitbot.settings import settings
from remitbot.store.redis_conn import redis_healthy
from remitbot.observability.logging import log

app = FastAPI(title="Remittance Chat Bot")

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Remittance bot is running. POST Telegram updates to /telegram/webhook or events to /api/chat/event.",
    }


@app.get("/health")
def health():
    return {"status": "ok", "redis": redis_healthy()}


# ---------------------------------------------------------------------------
# Never answer a chat transport with a 5xx: Telegram would redeliver the same
# update and the user could see an operation run twice.
# ---------------------------------------------------------------------------
@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(event="unhandled_exception", path=str(request.url.path), errorType=type(exc).__name__, error=str(exc)[:500])
    return JSONResponse(
        status_code=200,
        content={
            "status": "error",
            "replies": [{"text": "❌ An unexpected error occurred. Please try again.", "buttons": [], "parseMode": None}],
        },
    )


log(
    event="boot",
    remitApiBase=settings.REMIT_API_BASE,
    replyDeliveryMode=settings.REPLY_DELIVERY_MODE,
    telegramConfigured=bool(settings.TELEGRAM_BOT_TOKEN),
)
