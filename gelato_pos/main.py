"""Entry point for the gelato-pos terminal app."""

from __future__ import annotations

import logging
from pathlib import Path

from gelato_pos import config
from gelato_pos.models import StaffIdentity
from gelato_pos.persistence import (
    SqliteOrderStore,
    bootstrap_schema,
    list_active_products,
    load_shop_settings,
    seed_demo_catalog,
)
from gelato_pos.pos_app import PosApp
from gelato_pos.printer import EscposPrintDispatcher, NullPrintDispatcher, check_printer_dependencies
from gelato_pos.session import OrderSession
from gelato_pos.settlement import SettlementPersister
from gelato_pos.totals import tax_policy_for_rate


def configure_logging(path: str = config.DEBUG_LOG_PATH, level: int = logging.DEBUG) -> None:
    """Send log records to an append-only file so they never draw over the UI."""
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger("gelato_pos")
    root.setLevel(level)
    root.addHandler(handler)


def build_session() -> OrderSession:
    store = SqliteOrderStore(config.DB_PATH)

    def settings_provider():
        return load_shop_settings(config.DB_PATH)

    if config.PRINTER_BACKEND == "none":
        printer = NullPrintDispatcher()
    else:
        printer = EscposPrintDispatcher(settings_provider)

    return OrderSession(
        persister=SettlementPersister(store),
        printer=printer,
        staff=StaffIdentity(staff_id=config.STAFF_ID, role=config.STAFF_ROLE),
        settings_provider=settings_provider,
        tax_policy=tax_policy_for_rate(config.TAX_RATE),
    )


def main() -> None:
    configure_logging()
    log = logging.getLogger(__name__)

    bootstrap_schema(config.DB_PATH)
    seed_demo_catalog(config.DB_PATH)
    _, printer_status = check_printer_dependencies()
    log.info("startup db=%s printer_backend=%s printer_status=%r", config.DB_PATH, config.PRINTER_BACKEND, printer_status)

    app = PosApp(build_session(), list_active_products(config.DB_PATH))
    app.system_status = printer_status if config.PRINTER_BACKEND != "none" else "Printing disabled"
    app.run()


if __name__ == "__main__":
    main()
