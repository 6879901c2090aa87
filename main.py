import argparse
import logging
import os
import sys

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from services.errors import ServiceError
from utils.app_config import (
    get_api_url,
    get_db_folder,
    get_log_level,
    get_request_timeout,
    get_server_address,
)
from utils.constants import APP_NAME, PERSONAS
from utils.currency import format_currency

logger = logging.getLogger("gastos")


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gastos",
        description=f"{APP_NAME}: shared expenses for {PERSONAS[0]} and {PERSONAS[1]}",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("app", help="open the desktop app (default)")

    serve = sub.add_parser("serve", help="run the REST API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    for name, help_text in (
        ("import-statement", "import debits from a bank statement (.xlsx/.xls)"),
        ("import-receipt", "import products from a Mercadona receipt (.pdf)"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("file")
        cmd.add_argument("--category", type=int, required=True, help="category id")
        cmd.add_argument("--persona", choices=PERSONAS, required=True)
        cmd.add_argument("--dry-run", action="store_true", help="parse and print only")
        if name == "import-statement":
            cmd.add_argument("--save-balance", action="store_true",
                             help="also record the detected ending balance")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or get_log_level())

    try:
        match args.command:
            case None | "app":
                _cmd_app()
            case "serve":
                _cmd_serve(args)
            case "import-statement":
                _cmd_import_statement(args)
            case "import-receipt":
                _cmd_import_receipt(args)
    except ServiceError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    return 0


def _open_db() -> DatabaseManager:
    return DatabaseManager.open_default(db_folder=get_db_folder())


def _local_import_service(db: DatabaseManager):
    from api.server import build_services
    from services.import_service import ImportService

    services = build_services(db)
    return ImportService(services.expenses, services.balances)


def _cmd_serve(args):
    from api.server import run_server

    host, port = get_server_address()
    db = _open_db()
    try:
        run_server(db, args.host or host, args.port or port, log_level=get_log_level())
    finally:
        db.close()


def _cmd_import_statement(args):
    db = _open_db()
    try:
        importer = _local_import_service(db)
        statement = importer.preview_statement(args.file)
        if statement.diagnostic:
            print(statement.diagnostic)
            return
        for m in statement.movements:
            day = m.operation_date.strftime("%d/%m/%Y") if m.operation_date else "--/--/----"
            print(f"  {day}  {format_currency(m.amount):>14}  {m.concept}")
        print(f"{len(statement.movements)} movements, total {format_currency(statement.total_amount)}")
        if statement.ending_balance is not None:
            print(f"Ending balance: {format_currency(statement.ending_balance)}")
        if args.dry_run:
            return
        result = importer.save_statement(statement, args.category, args.persona)
        print(result.summary())
        if args.save_balance and statement.ending_balance is not None:
            importer.save_balance(statement.ending_balance)
            print("Balance saved.")
    finally:
        db.close()


def _cmd_import_receipt(args):
    db = _open_db()
    try:
        importer = _local_import_service(db)
        receipt = importer.preview_receipt(args.file)
        for p in receipt.products:
            print(f"  {p.quantity:>3} x {p.description:<32} {format_currency(p.amount):>12}")
        total = format_currency(receipt.total) if receipt.total is not None else "?"
        print(f"{len(receipt.products)} products, receipt total {total}")
        if args.dry_run:
            return
        result = importer.save_receipt(receipt, args.category, args.persona)
        print(result.summary())
    finally:
        db.close()


def _cmd_app():
    import customtkinter as ctk

    from api.client import GastosApiClient
    from api.server import start_embedded_server
    from services.import_service import ImportService
    from ui.app_window import AppWindow
    from utils.app_config import get_appearance_mode, get_default_persona

    # ── Backend: remote API or embedded server over the local DB ──────────────
    db = None
    server = None
    api_url = get_api_url()
    if not api_url:
        host, port = get_server_address()
        db = _open_db()
        server = start_embedded_server(db, host, port)
        api_url = f"http://{host}:{port}"
    client = GastosApiClient(api_url, timeout=get_request_timeout())
    import_svc = ImportService(client, client)
    logger.info("Desktop app using API at %s", api_url)

    # ── Appearance ───────────────────────────────────────────────────────────
    ctk.set_appearance_mode(get_appearance_mode())
    ctk.set_default_color_theme("blue")

    # ── Launch UI ────────────────────────────────────────────────────────────
    app = AppWindow(
        client=client,
        import_service=import_svc,
        default_persona=get_default_persona(),
        api_url=api_url,
    )

    def on_close():
        client.close()
        if server is not None:
            server.stop()
        if db is not None:
            db.close()
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    sys.exit(main())
