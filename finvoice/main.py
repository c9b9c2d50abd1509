"""Main application entry point for finvoice."""

import sys
import argparse
import logging
import threading
from pathlib import Path
from typing import Any, Dict

from aiohttp import web
from pubsub import pub

from .capture import CaptureController, CaptureEventPublisher, STATE_TOPIC
from .config import FinVoiceConfig
from .models.forms import draft_from_voice
from .models.transcription import FormType
from .server import create_app
from .ui import ConsoleView

logger = logging.getLogger(__name__)


def setup_logging(config: FinVoiceConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/finvoice.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("finvoice starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def run_server(config: FinVoiceConfig) -> None:
    host = config.get('server.host', '0.0.0.0')
    port = config.get('server.port', 8080)
    logger.info(f"Serving transcription API on {host}:{port}")
    web.run_app(create_app(config), host=host, port=port)


def record_once(config: FinVoiceConfig, form_type: FormType, timeout: float = 120.0) -> int:
    """Capture one voice entry, upload it and print the pre-filled draft.

    Returns:
        Process exit code
    """
    view = ConsoleView()
    done = threading.Event()
    outcome: Dict[str, Any] = {}

    def on_result(result) -> None:
        outcome["result"] = result
        done.set()

    def on_error(message: str) -> None:
        outcome["error"] = message
        done.set()

    pub.subscribe(view.on_state, STATE_TOPIC)
    controller = CaptureController.from_config(
        config,
        form_type=form_type,
        on_result=on_result,
        on_error=on_error,
        publisher=CaptureEventPublisher(),
    )
    try:
        controller.start_listening()
        try:
            done.wait(timeout)
        except KeyboardInterrupt:
            controller.stop_listening()
            done.wait(timeout)
    finally:
        pub.unsubscribe(view.on_state, STATE_TOPIC)
        controller.close()

    if "result" in outcome:
        view.show_draft(draft_from_voice(outcome["result"], form_type))
        return 0
    if "error" not in outcome:
        view.console.print(f"❌ Timed out after {timeout:.0f}s", style="red")
    return 1


def main() -> None:
    """Main entry point for finvoice."""
    parser = argparse.ArgumentParser(
        description="finvoice - voice input for the finance tracker",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="finvoice v0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the transcription HTTP service")

    record_parser = subparsers.add_parser("record", help="Record one voice entry from the microphone")
    record_parser.add_argument(
        "--type",
        dest="form_type",
        choices=[t.value for t in FormType],
        default=FormType.EXPENSE.value,
        help="Which form to fill (default: expense)"
    )
    record_parser.add_argument(
        "--server",
        type=str,
        help="Transcription service URL (overrides config)"
    )
    record_parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Give up after this many seconds (default: 120)"
    )

    args = parser.parse_args()

    try:
        config = FinVoiceConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    if args.command == "serve":
        run_server(config)
        return

    if args.server:
        config.set('client.server_url', args.server)
    try:
        sys.exit(record_once(config, FormType(args.form_type), timeout=args.timeout))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")


if __name__ == "__main__":
    main()
