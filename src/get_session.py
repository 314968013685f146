"""Interactive Telegram login helpers.

QR login is the default: the login URL is handed to ``on_qr`` (so a frontend
can show it) or printed as an ASCII QR code in the terminal.
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
from getpass import getpass
from typing import Callable, Optional

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors

from client import build_client

QR_LOGIN_TIMEOUT = 120


def render_qr(url: str) -> str:
    """Return the QR code for ``url`` as printable ASCII art."""

    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out, invert=True)
    return out.getvalue()


def _resolve_2fa_password() -> str:
    password = os.getenv("2FA")
    if password:
        return password
    return getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient, on_qr: Optional[Callable[[str], None]]) -> None:
    qr = await client.qr_login()
    if on_qr is not None:
        on_qr(qr.url)
    else:
        print(render_qr(qr.url))
    await qr.wait(timeout=QR_LOGIN_TIMEOUT)


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    try:
        await client.sign_in(phone=phone, code=code)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


def _pick_login_method(login_method: Optional[str]) -> str:
    method = (login_method or os.getenv("LOGIN_METHOD") or "qr").strip().lower()
    if method not in {"qr", "phone"}:
        raise ValueError(f"Unsupported LOGIN_METHOD: {method}")
    return method


async def authorize(
    client: TelegramClient,
    on_qr: Optional[Callable[[str], None]] = None,
    login_method: Optional[str] = None,
) -> None:
    """Log the client in unless the session file is already authorized."""

    if await client.is_user_authorized():
        return

    try:
        if _pick_login_method(login_method) == "phone":
            await _authorize_with_phone(client)
        else:
            await _authorize_with_qr(client, on_qr)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


async def main() -> None:
    load_dotenv()
    client = build_client()
    await client.connect()

    await authorize(client)

    me = await client.get_me()
    logging.getLogger(__name__).info("Logged in as: %s", me.first_name)

    await client.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
