"""CLI entry point for chat-console.

This module provides the command-line interface for starting a chat.
It can be invoked as `chat-console` (via the script entry point) or
`python -m chat_console`.
"""

import argparse
import asyncio
import logging
import sys

from chat_console import __version__, create_app
from chat_console.config import ChatConsoleSettings, is_valid_endpoint
from chat_console.console import Console

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-console",
        description="Interactive terminal chat client for Ollama models",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"chat-console {__version__}",
    )

    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via CHAT_CONSOLE_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model to start the chat with (default: gemma3:12b, can be set via CHAT_CONSOLE_MODEL)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING, can be set via CHAT_CONSOLE_LOG_LEVEL)",
    )

    return parser


def build_settings(args: argparse.Namespace, console: Console) -> ChatConsoleSettings:
    """Build settings; CLI args override environment variables and the settings file."""
    settings_kwargs = {}
    if args.endpoint is not None:
        if is_valid_endpoint(args.endpoint):
            settings_kwargs["ollama_host"] = args.endpoint
            console.line(f"Using endpoint from command line: {args.endpoint}")
        else:
            console.line(f"Invalid endpoint URI: {args.endpoint}. Using default endpoint.")
    if args.model is not None:
        settings_kwargs["model"] = args.model
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    return ChatConsoleSettings(**settings_kwargs)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the chat-console CLI.

    Parses command-line arguments, configures logging and runs the chat
    loop until the user exits or interrupts it.
    """
    args = build_parser().parse_args(argv)
    console = Console()

    settings = build_settings(args, console)

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, stream=sys.stderr)

    app = create_app(settings=settings, console=console)

    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        app.state.request_cancellation()
        console.line()
        console.line("Cancellation requested. Exiting...")

    return 0


if __name__ == "__main__":
    sys.exit(main())
