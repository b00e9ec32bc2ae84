"""
CLI поверх OpenTok SDK.

Подкоманды:
- create-session, token, decode-token
- stream (один поток или список)
- archive start|stop|get|list|delete

Результат печатается JSON'ом в stdout, ошибки SDK — JSON'ом в stderr, код выхода 2.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

from opentok_server.client import OpenTok
from opentok_server.common.errors import AppError
from opentok_server.common.logging import setup_logging
from opentok_server.domain.enums import ArchiveMode, MediaMode, OutputMode, TokenFormat, TokenRole


def _dump(value: Any) -> str:
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json", by_alias=True)
    return json.dumps(value, ensure_ascii=False, indent=2)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="opentok-server", description="OpenTok server SDK CLI")
    p.add_argument("--api-key", default=os.getenv("OPENTOK_API_KEY"))
    p.add_argument("--api-secret", default=os.getenv("OPENTOK_API_SECRET"))
    p.add_argument("--api-url", default=None, help="Override OPENTOK_API_URL")
    p.add_argument("--timeout-sec", type=int, default=None)
    sub = p.add_subparsers(dest="command", required=True)

    cs = sub.add_parser("create-session", help="Create a new session")
    cs.add_argument("--location", default=None, help="IPv4 location hint")
    cs.add_argument("--media-mode", choices=[m.value for m in MediaMode], default=None)
    cs.add_argument("--archive-mode", choices=[m.value for m in ArchiveMode], default=None)

    tk = sub.add_parser("token", help="Generate a client token")
    tk.add_argument("session_id")
    tk.add_argument("--role", choices=[r.value for r in TokenRole], default=TokenRole.publisher.value)
    tk.add_argument("--expire-time", type=int, default=None, help="Unix seconds")
    tk.add_argument("--data", default=None, help="Connection data (<= 1000 chars)")
    tk.add_argument("--layout-class", action="append", default=[])
    tk.add_argument("--format", dest="token_format", choices=[f.value for f in TokenFormat], default=None)

    dt = sub.add_parser("decode-token", help="Verify a client token and print its claims")
    dt.add_argument("token")

    st = sub.add_parser("stream", help="Stream info (or list when stream id is omitted)")
    st.add_argument("session_id")
    st.add_argument("stream_id", nargs="?", default=None)

    ar = sub.add_parser("archive", help="Archive management")
    ar_sub = ar.add_subparsers(dest="archive_command", required=True)

    ar_start = ar_sub.add_parser("start")
    ar_start.add_argument("session_id")
    ar_start.add_argument("--name", default=None)
    ar_start.add_argument("--no-audio", action="store_true")
    ar_start.add_argument("--no-video", action="store_true")
    ar_start.add_argument(
        "--output-mode", choices=[m.value for m in OutputMode], default=OutputMode.composed.value
    )
    ar_start.add_argument("--resolution", default=None)

    for name in ("stop", "get", "delete"):
        cmd = ar_sub.add_parser(name)
        cmd.add_argument("archive_id")

    ar_list = ar_sub.add_parser("list")
    ar_list.add_argument("--offset", type=int, default=0)
    ar_list.add_argument("--count", type=int, default=None)
    ar_list.add_argument("--session-id", default=None)
    return p


def _run_archive(opentok: OpenTok, args: argparse.Namespace) -> Any:
    cmd = args.archive_command
    if cmd == "start":
        return opentok.start_archive(
            args.session_id,
            name=args.name,
            has_audio=not args.no_audio,
            has_video=not args.no_video,
            output_mode=args.output_mode,
            resolution=args.resolution,
        )
    if cmd == "stop":
        return opentok.stop_archive(args.archive_id)
    if cmd == "get":
        return opentok.get_archive(args.archive_id)
    if cmd == "delete":
        opentok.delete_archive(args.archive_id)
        return {"deleted": args.archive_id}
    return opentok.list_archives(offset=args.offset, count=args.count, session_id=args.session_id)


def run(args: argparse.Namespace) -> Any:
    opentok = OpenTok(
        args.api_key,
        args.api_secret,
        api_url=args.api_url,
        timeout_sec=args.timeout_sec,
    )
    if args.command == "create-session":
        return opentok.create_session_details(
            location=args.location,
            media_mode=args.media_mode,
            archive_mode=args.archive_mode,
        )
    if args.command == "token":
        return {
            "token": opentok.generate_token(
                args.session_id,
                args.role,
                expire_time=args.expire_time,
                data=args.data,
                initial_layout_class_list=args.layout_class,
                token_format=args.token_format,
            )
        }
    if args.command == "decode-token":
        return opentok.decode_token(args.token)
    if args.command == "stream":
        if args.stream_id:
            return opentok.get_stream_info(args.session_id, args.stream_id)
        return opentok.list_streams(args.session_id)
    return _run_archive(opentok, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    # stdout занят JSON-результатом
    setup_logging(stream=sys.stderr)
    try:
        result = run(args)
    except AppError as e:
        print(
            json.dumps(
                {"error": e.code, "message": e.message, "details": e.details},
                ensure_ascii=False,
                default=str,
            ),
            file=sys.stderr,
        )
        return 2
    print(_dump(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
