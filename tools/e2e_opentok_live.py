"""
E2E smoke против настоящего OpenTok API.

Сценарий:
1) создаём routed-сессию
2) выпускаем publisher-токен (jwt и t1) и проверяем, что claims читаются обратно
3) читаем список архивов проекта
4) (опционально) start -> get -> stop на сессии с активным publisher'ом
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


def _args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="E2E smoke: session -> token -> archives")
    p.add_argument("--api-key", default=os.environ.get("OPENTOK_KEY", os.environ.get("OPENTOK_API_KEY", "")))
    p.add_argument(
        "--api-secret",
        default=os.environ.get("OPENTOK_SECRET", os.environ.get("OPENTOK_API_SECRET", "")),
    )
    p.add_argument("--api-url", default=os.environ.get("OPENTOK_API_URL"))
    p.add_argument(
        "--archive-session-id",
        default=os.environ.get("E2E_ARCHIVE_SESSION_ID", ""),
        help="Session with a live publisher: run start/get/stop archive against it",
    )
    return p.parse_args()


def run_live_smoke(*, api_key: str, api_secret: str, api_url: str | None, archive_session_id: str) -> None:
    from opentok_server.client import OpenTok
    from opentok_server.domain.enums import MediaMode, TokenFormat, TokenRole

    opentok = OpenTok(api_key, api_secret, api_url=api_url)

    session_id = opentok.create_session(media_mode=MediaMode.routed)
    if not session_id:
        raise RuntimeError("empty session_id")

    for fmt in (TokenFormat.jwt, TokenFormat.t1):
        token = opentok.generate_token(session_id, TokenRole.publisher, token_format=fmt)
        claims = opentok.decode_token(token)
        if claims.session_id != session_id or claims.role != TokenRole.publisher:
            raise RuntimeError(f"{fmt.value} token claims mismatch")

    opentok.list_archives(count=5)

    if archive_session_id:
        started = opentok.start_archive(archive_session_id, name="e2e-live")
        fetched = opentok.get_archive(started.id)
        stopped = opentok.stop_archive(started.id)
        if not (started.id == fetched.id == stopped.id):
            raise RuntimeError("archive id changed between start/get/stop")


def main() -> int:
    args = _args()
    if not args.api_key or not args.api_secret:
        print("e2e opentok live smoke failed: OPENTOK_KEY and OPENTOK_SECRET are required")
        return 2
    try:
        run_live_smoke(
            api_key=args.api_key,
            api_secret=args.api_secret,
            api_url=args.api_url,
            archive_session_id=args.archive_session_id.strip(),
        )
    except Exception as e:
        print(f"e2e opentok live smoke failed: {e}")
        return 2

    print("e2e opentok live smoke OK (session -> token -> archives)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
