"""Watch a board from the terminal.

Usage::

    python -m taskboard.client --server http://localhost:3000
    python -m taskboard.client --translate Polish
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from taskboard.client.connection import BoardConnection, TranslationClient
from taskboard.client.console import BoardView
from taskboard.client.reconciler import ClientReconciler
from taskboard.client.translation_cache import TranslationCache


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Follow a shared task board live")
    parser.add_argument("--server", default="http://localhost:3000", help="Board server base URL")
    parser.add_argument("--translate", metavar="LANGUAGE", default=None, help="Show the board translated")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def _ws_url(server: str) -> str:
    base = server.rstrip("/")
    if base.startswith("https://"):
        return "wss://" + base[len("https://") :] + "/ws"
    return "ws://" + base.removeprefix("http://") + "/ws"


async def watch(server: str, language: str | None) -> None:
    view = BoardView()
    connection: BoardConnection | None = None

    reconciler = ClientReconciler(send=lambda message: connection.send(message), render=view.render)
    connection = BoardConnection(_ws_url(server), reconciler, on_status=view.status)

    if language:
        overlay = TranslationCache(
            TranslationClient(server),
            lambda: reconciler.board,
            target_language=language,
            on_change=lambda: None if overlay.in_flight else view.render(reconciler.board),
            on_notice=view.notice,
        )
        view.overlay = overlay
        reconciler.add_listener(overlay.content_changed)
        overlay.enable()

    try:
        await connection.run()
    finally:
        await connection.close()


def main() -> None:
    args = parse_arguments()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    try:
        asyncio.run(watch(args.server, args.translate))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
