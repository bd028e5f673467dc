#!/usr/bin/env python3
"""
Register the bot's webhook with Telegram.

Usage:
    python scripts/set_webhook.py https://bot.example.com/telegram/webhook

TELEGRAM_BOT_TOKEN must be set; TELEGRAM_WEBHOOK_SECRET is sent along when configured.
"""
import sys

from remitbot.settings import settings
from remitbot.transport.telegram import set_webhook


def main(argv):
    if len(argv) != 2:
        print(__doc__)
        return 2
    if not settings.TELEGRAM_BOT_TOKEN:
        print("TELEGRAM_BOT_TOKEN is not set.")
        return 1

    url = argv[1]
    result = set_webhook(url, settings.TELEGRAM_WEBHOOK_SECRET)
    print(f"Webhook set to {url}: {result}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
