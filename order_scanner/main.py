"""Entry point for the order-scanner Textual app."""

from __future__ import annotations

from order_scanner.debug_log import configure_logging
from order_scanner.scanner_app import OrderScannerApp


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    OrderScannerApp().run()


if __name__ == "__main__":
    main()
