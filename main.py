"""
Main entry point for the Xfer application.

This module handles:
- Application initialization
- Command line argument parsing
- Logging configuration
- Exception handling
- Composition of the session and its services
- Guaranteed release of folder access on exit
"""

from __future__ import annotations

import argparse
import faulthandler
import logging
import os
import signal
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from PyQt6.QtCore import QSettings, QTimer
from PyQt6.QtWidgets import QApplication, QMessageBox

from xfer import __version__


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "Xfer"
APP_DISPLAY_NAME = "Xfer"
APP_VERSION = __version__
APP_ORGANIZATION = "Xfer"
APP_DOMAIN = "xfer.example.com"

# Paths
if getattr(sys, 'frozen', False):
    # Running as compiled executable
    APP_DIR = Path(sys.executable).parent
else:
    # Running as script
    APP_DIR = Path(__file__).parent

LOGS_DIR = APP_DIR / "logs"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    log_level: str = "INFO"
    reset_settings: bool = False
    debug: bool = False


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Exception Handling
# =============================================================================

class ExceptionHandler:
    """
    Global exception handler for unhandled exceptions.

    Shows error dialog and logs the exception.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._app: Optional[QApplication] = None

    def set_application(self, app: QApplication) -> None:
        """Set the application instance for error dialogs."""
        self._app = app

    def handle_exception(
        self,
        exc_type: type,
        exc_value: BaseException,
        exc_tb
    ) -> None:
        """Handle an unhandled exception."""
        # Don't handle keyboard interrupt
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return

        self.logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_tb)
        )

        if self._app and QApplication.instance():
            tb_text = ''.join(traceback.format_exception(exc_type, exc_value, exc_tb))
            dialog = QMessageBox()
            dialog.setIcon(QMessageBox.Icon.Critical)
            dialog.setWindowTitle("Application Error")
            dialog.setText(f"An unexpected error occurred:\n\n{exc_type.__name__}: {exc_value}")
            dialog.setDetailedText(tb_text)
            dialog.exec()


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Copy files that are missing from a destination folder",
    )

    parser.add_argument(
        '--reset-settings',
        action='store_true',
        help='Forget remembered folders and reset all settings'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode (also writes a log file)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Log level'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {APP_VERSION}'
    )

    parsed = parser.parse_args(args)

    result = CommandLineArgs()
    result.reset_settings = parsed.reset_settings
    result.debug = parsed.debug

    if parsed.debug or parsed.verbose:
        result.log_level = 'DEBUG'
    else:
        result.log_level = parsed.log_level

    return result


# =============================================================================
# Application Setup
# =============================================================================

def setup_application(args: CommandLineArgs) -> QApplication:
    """
    Create and configure the QApplication.

    Args:
        args: Parsed command line arguments

    Returns:
        Configured QApplication instance
    """
    app = QApplication(sys.argv)

    app.setApplicationName(APP_NAME)
    app.setApplicationDisplayName(APP_DISPLAY_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName(APP_ORGANIZATION)
    app.setOrganizationDomain(APP_DOMAIN)

    app.setQuitOnLastWindowClosed(True)

    return app


def setup_settings(args: CommandLineArgs) -> QSettings:
    """
    Set up the platform settings store that holds folder grants.

    Args:
        args: Parsed command line arguments

    Returns:
        QSettings instance
    """
    # Use INI format for cross-platform compatibility
    QSettings.setDefaultFormat(QSettings.Format.IniFormat)

    settings = QSettings()

    if args.reset_settings:
        settings.clear()
        settings.sync()

    return settings


# =============================================================================
# Signal Handlers
# =============================================================================

def setup_signal_handlers() -> Optional[QTimer]:
    """Set up Unix signal handlers."""
    if sys.platform == 'win32':
        return None

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    # Let the interpreter run periodically so Python signal handlers fire
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(500)
    return timer


def _signal_handler(signum, frame) -> None:
    """Handle Unix signals."""
    logging.info(f"Received signal {signum}, shutting down...")
    QApplication.quit()


# =============================================================================
# Cleanup
# =============================================================================

def cleanup(logger: logging.Logger, session=None, store=None) -> None:
    """
    Perform cleanup on application exit.

    Args:
        logger: Logger instance
        session: TransferSession to close
        store: AuthorizationStore whose handles must be released
    """
    logger.info("Cleaning up...")

    if session is not None:
        session.close()

    # Releasing twice is a no-op, so this also covers a failed start-up
    if store is not None:
        store.release_all()

    logger.info("Cleanup complete")


# =============================================================================
# Main Function
# =============================================================================

def main() -> int:
    """
    Application main entry point.

    Returns:
        Exit code (0 for success)
    """
    # Redirect stdout/stderr if None (common in frozen apps)
    if sys.stdout is None:
        sys.stdout = open(os.devnull, 'w')
    if sys.stderr is None:
        sys.stderr = open(os.devnull, 'w')

    faulthandler.enable()

    args = parse_arguments()

    log_file = LOGS_DIR / f"{APP_NAME}_{datetime.now():%Y%m%d}.log" if args.debug else None
    logger = setup_logging(args.log_level, log_file)
    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    exception_handler = ExceptionHandler(logger)
    sys.excepthook = exception_handler.handle_exception

    from xfer.services.authorization import AuthorizationStore
    from xfer.services.session import TransferSession
    from xfer.services.settings import SettingsManager
    from xfer.ui.dialogs import QtFolderChooser
    from xfer.ui.main_window import MainWindow

    session = None
    store = None

    try:
        app = setup_application(args)
        exception_handler.set_application(app)

        store = AuthorizationStore(setup_settings(args))
        settings_manager = SettingsManager()
        if args.reset_settings:
            settings_manager.reset()

        chooser = QtFolderChooser()
        session = TransferSession(store, settings_manager, chooser)

        window = MainWindow(session)
        chooser.set_parent(window)
        ui = settings_manager.settings.ui
        window.resize(ui.window_width, ui.window_height)

        signal_timer = setup_signal_handlers()

        window.show()
        session.restore()

        logger.info("Application started successfully")

        exit_code = app.exec()

        logger.info(f"Application exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Fatal error during startup: {e}", exc_info=True)

        if QApplication.instance():
            QMessageBox.critical(
                None,
                "Fatal Error",
                f"The application failed to start:\n\n{e}\n\n"
                "Please check the logs for more information."
            )
        return 1

    finally:
        cleanup(logger, session, store)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
