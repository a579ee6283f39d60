"""
Application Initialization
==========================
This module constructs the Store/View architecture and starts the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Picks the persistence backend (local HDF5 file or the REST API).
2. Instantiates the Store and opens the requested venture.
3. Passes the Store into the Main Window so they can communicate.

Usage:
    $ python run.py siteplan.png --venture v1
    $ python run.py siteplan.png --venture 64f0... --rest
"""
import argparse
import logging
import sys

from PySide6.QtWidgets import QApplication

from plotdigitizer.app.state import Store
from plotdigitizer.config import DATA_PATH, API_BASE_URL
from plotdigitizer.controller.rest_client import RestRepository
from plotdigitizer.logging_config import setup_logging
from plotdigitizer.model.io import HDF5Repository
from plotdigitizer.view.main_window import MainWindow, VISIBLE_APP_NAME


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="plotdigitizer", description=VISIBLE_APP_NAME)
    parser.add_argument("image", help="Site-plan image of the venture")
    parser.add_argument("--venture", default="default", help="Venture id")
    parser.add_argument("--rest", action="store_true", help=f"Use the REST backend at {API_BASE_URL}")
    parser.add_argument("--data", default=DATA_PATH, help="Local HDF5 store (ignored with --rest)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", default=None, help="Also append the log to this file")
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args(sys.argv[1:])

    # 1. Setup Logging (Console, optional file)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # 2. Create the Qt Application
    app = QApplication(sys.argv[:1])
    app.setApplicationName(VISIBLE_APP_NAME)

    # 3. Initialize the Store with the chosen backend
    repository = RestRepository() if args.rest else HDF5Repository(args.data)
    store = Store(repository)

    # 4. Initialize the Main Window, then load the venture so it sees every signal
    window = MainWindow(store)
    store.open_venture(args.venture, image_path=args.image)
    window.show()

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
