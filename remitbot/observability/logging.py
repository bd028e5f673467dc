import json
import time
from remitbot.settings import settings

# Values under these keys never reach stdout in clear text when redaction is on
SENSITIVE_KEYS = {"text", "otp", "token", "authToken", "reply", "payload", "address"}
# Emails keep their domain so delivery problems per provider stay visible
EMAIL_KEYS = {"email", "recipientEmail"}

def mask_email(v):
    if not isinstance(v, str) or "@" not in v:
        return _redact_value(v)
    return f"***@{v.rsplit('@', 1)[1]}"

def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    if isinstance(v, (list, tuple)):
        return [_redact_value(x) for x in v]
    return v

def _clean(k, v):
    if k in SENSITIVE_KEYS:
        return _redact_value(v)
    if k in EMAIL_KEYS:
        return mask_email(v)
    if isinstance(v, dict):
        return {sk: _clean(sk, sv) for sk, sv in v.items()}
    return v

def log(event: str, **fields):
    """One JSON line per event on stdout."""
    payload = {"ts": int(time.time()), "event": event}

    if settings.ENABLE_PII_REDACTION:
        payload.update({k: _clean(k, v) for k, v in fields.items()})
    else:
        payload.update(fields)

    print(json.dumps(payload, ensure_ascii=False, default=str))
