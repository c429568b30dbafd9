from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Sequence

from ..config import load_config
from ..errors import InventoryValidationError
from ..inventory.storage import SqliteSlotStorage
from ..inventory.store import InventoryStore
from ..logging import get_logger
from ..paths import expand_abs
from ..recognition.parser import parse_recognition_text
from ..service import ScanService
from ..session.recognition import SessionState
from ..smartbox.simulator import CATEGORIES, SimulatedPartsBox

LOG = get_logger("cli-main")


def _open_store(ns: argparse.Namespace) -> InventoryStore:
    db_path = expand_abs(ns.db) if ns.db else load_config(os.getcwd()).db_path
    return InventoryStore(SqliteSlotStorage(db_path))


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _handle_list(ns: argparse.Namespace) -> int:
    store = _open_store(ns)
    if ns.json:
        _print_json(store.snapshot())
        return 0
    if not len(store):
        print("(inventory is empty)")
        return 0
    for r in store:
        spec = f" - {r.spec}" if r.spec else ""
        print(f"{r.id}  {r.name}{spec}  x{r.quantity}  [{r.function}]")
    return 0


def _handle_add(ns: argparse.Namespace) -> int:
    if ns.quantity < 1:
        LOG.error(f"Quantity must be at least 1: {ns.quantity}")
        return 2
    store = _open_store(ns)
    try:
        record = store.upsert(
            ns.name.strip(),
            (ns.spec or "").strip(),
            ns.quantity,
            (ns.function or "").strip(),
        )
    except InventoryValidationError as exc:
        LOG.error(f"Invalid part: {exc}")
        return 2
    _print_json(record.as_dict())
    return 0 if store.last_persistence_error is None else 1


def _handle_adjust(ns: argparse.Namespace) -> int:
    store = _open_store(ns)
    record = store.adjust_quantity(ns.id, ns.delta)
    if record is None:
        LOG.error(f"No part with id {ns.id}")
        return 1
    _print_json(record.as_dict())
    return 0


def _handle_delete(ns: argparse.Namespace) -> int:
    store = _open_store(ns)
    removed = store.delete(ns.ids)
    print(removed)
    return 0 if removed else 1


def _handle_parse(ns: argparse.Namespace) -> int:
    if ns.file:
        with open(expand_abs(ns.file), "r", encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()
    summary = parse_recognition_text(text)
    if summary is None:
        LOG.error("Text does not contain a recognizable part name")
        return 1
    _print_json(summary.as_dict())
    return 0


def _handle_scan(ns: argparse.Namespace) -> int:
    config = load_config(os.getcwd())
    store = _open_store(ns)
    svc = ScanService(config, store=store)
    if ns.save:
        record = svc.scan_and_commit(
            expand_abs(ns.image),
            quantity=ns.quantity,
            name=ns.name,
            spec=ns.spec,
            function=ns.function,
        )
        if record is None:
            return 1
        _print_json(record.as_dict())
        return 0

    session = svc.scan_file(expand_abs(ns.image))
    if session is None:
        return 2
    try:
        if session.notice is not None:
            LOG.error(f"{session.notice.title}: {session.notice.message}")
        print(session.display_text)
        if session.state != SessionState.PARSED:
            return 1
        _print_json(session.summary.as_dict())
        return 0
    finally:
        session.close()


def _handle_serve(ns: argparse.Namespace) -> int:
    from ..api.app import create_app
    import uvicorn

    app = create_app(_open_store(ns), allow_origins=ns.allow_origins)
    uvicorn.run(app, host=ns.host, port=ns.port, log_level=ns.log_level)
    return 0


def _handle_box(ns: argparse.Namespace) -> int:
    if ns.box_cmd == "catalogue":
        for category in CATEGORIES:
            print(f"{category}: {', '.join(SimulatedPartsBox.parts_in(category))}")
        return 0
    box = SimulatedPartsBox(connect_delay=0)
    try:
        box.connect()
        ok = box.send(ns.part)
        if not ok and box.notice is not None:
            LOG.error(f"{box.notice.title}: {box.notice.message}")
        print(box.status_message)
    finally:
        box.close()
    return 0 if ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="partsbox",
        description="Recognize electronic components from photos and keep a parts inventory.",
    )
    parser.add_argument("--db", help="Inventory SQLite file (default: PARTSBOX_DB or var/partsbox at repo root)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", help="Show the inventory.")
    list_cmd.add_argument("--json", action="store_true", help="Print raw JSON records")
    list_cmd.set_defaults(handler=_handle_list)

    add_cmd = subparsers.add_parser("add", help="Add a part manually (merges with an identical name/spec).")
    add_cmd.add_argument("--name", required=True)
    add_cmd.add_argument("--spec", default="")
    add_cmd.add_argument("--quantity", type=int, default=1)
    add_cmd.add_argument("--function", default="")
    add_cmd.set_defaults(handler=_handle_add)

    adjust_cmd = subparsers.add_parser("adjust", help="Change a part's quantity by a delta (floors at 0).")
    adjust_cmd.add_argument("id")
    adjust_cmd.add_argument("delta", type=int)
    adjust_cmd.set_defaults(handler=_handle_adjust)

    delete_cmd = subparsers.add_parser("delete", help="Delete parts by id.")
    delete_cmd.add_argument("ids", nargs="+")
    delete_cmd.set_defaults(handler=_handle_delete)

    parse_cmd = subparsers.add_parser("parse", help="Parse a saved vision-API answer (file or stdin).")
    parse_cmd.add_argument("--file")
    parse_cmd.set_defaults(handler=_handle_parse)

    scan_cmd = subparsers.add_parser("scan", help="Recognize a component photo via the configured vision API.")
    scan_cmd.add_argument("--image", required=True)
    scan_cmd.add_argument("--save", action="store_true", help="Commit the recognized part to the inventory")
    scan_cmd.add_argument("--quantity", type=int, default=1)
    scan_cmd.add_argument("--name", help="Override the recognized name")
    scan_cmd.add_argument("--spec", help="Override the recognized spec")
    scan_cmd.add_argument("--function", help="Override the recognized function")
    scan_cmd.set_defaults(handler=_handle_scan)

    serve_cmd = subparsers.add_parser("serve", help="Run the inventory JSON API.")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8002)
    serve_cmd.add_argument("--log-level", default="info")
    serve_cmd.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve_cmd.set_defaults(handler=_handle_serve)

    box_cmd = subparsers.add_parser("box", help="Drive the simulated smart parts box.")
    box_sub = box_cmd.add_subparsers(dest="box_cmd", required=True)
    box_sub.add_parser("catalogue", help="List categories and their parts")
    send = box_sub.add_parser("send", help="Connect and dispense one part")
    send.add_argument("part")
    box_cmd.set_defaults(handler=_handle_box)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
