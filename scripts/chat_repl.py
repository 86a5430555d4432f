"""
Interactive text REPL over the order brain.

  python scripts/chat_repl.py                      # demo catalog
  python scripts/chat_repl.py --catalog my.json    # custom JSON catalog
  python scripts/chat_repl.py --postgres           # PostgresCatalog via DATABASE_URL

Commands: /state, /reset, /quit
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.utils.load_env import configure_logging, load_env  # noqa: E402

load_env()

from src.brain import settings  # noqa: E402
from src.brain.catalog import InMemoryCatalog  # noqa: E402
from src.brain.turn_controller import TurnController  # noqa: E402

DEFAULT_CATALOG = Path(__file__).resolve().parent / "demo_catalog.json"


async def _run(args) -> None:
    db = None
    if args.postgres:
        from src.db.catalog_repo import PostgresCatalog
        from src.db.neon import NeonDB

        db = NeonDB()
        await db.connect()
        catalog = PostgresCatalog(db)
    else:
        catalog = InMemoryCatalog.from_json_file(args.catalog)

    controller = TurnController.from_settings(catalog)
    session_id = args.session or f"repl-{uuid.uuid4().hex[:8]}"
    print(f"==[order brain REPL]== session={session_id} llm={'on' if controller.llm else 'off'}")

    try:
        while True:
            try:
                line = input("you> ")
            except EOFError:
                break
            cmd = line.strip()
            if cmd in ("/quit", "/exit"):
                break
            if cmd == "/reset":
                controller.store.delete(session_id)
                print("(session reset)")
                continue
            if cmd == "/state":
                print(json.dumps(controller.store.get(session_id).snapshot(), indent=2, ensure_ascii=False))
                continue

            res = await controller.resolve_turn(session_id, line, location_hint=args.location)
            print(f"bot> {res.reply_core.text}")
            print(f"     [{res.intent.value} {res.confidence:.2f} {res.source.value}:{res.rule}] slots={res.slots}")
    finally:
        if db is not None:
            await db.close()


def main() -> None:
    ap = argparse.ArgumentParser(description="Chat with the order brain")
    ap.add_argument("--catalog", default=str(DEFAULT_CATALOG))
    ap.add_argument("--postgres", action="store_true")
    ap.add_argument("--location", default=None, help="location hint passed on every turn")
    ap.add_argument("--session", default=None)
    args = ap.parse_args()

    configure_logging(settings.LOG_LEVEL)
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
