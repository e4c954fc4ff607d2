#!/usr/bin/env python3
"""
Document Chat - upload text documents and chat with them.

Main entry point. Runs the HTTP service or the same pipeline from the
command line.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from core.exceptions import ChatAssistantError, format_error_chain
from core.logging_config import get_logger, level_from_name, setup_logging
from ingestion.extractor import PlainTextExtractor
from server.config import ServerConfig
from server.services import build_services

# Module logger
logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace, config: ServerConfig) -> int:
    import uvicorn

    from server.app import create_app

    uvicorn.run(
        create_app(config),
        host=args.host or config.host,
        port=args.port or config.port,
        log_level="info",
    )
    return 0


def cmd_ingest(args: argparse.Namespace, config: ServerConfig) -> int:
    extractor = PlainTextExtractor()
    documents = [extractor.extract(path) for path in args.files]

    services = build_services(config)
    result = services.ingestion.ingest(args.user, documents)

    print(f"Stored {result.records_inserted} chunks from {len(result.files)} file(s)")
    if result.manifest_error:
        print(f"Warning: file list not updated ({result.manifest_error})")
    return 0


def cmd_delete(args: argparse.Namespace, config: ServerConfig) -> int:
    services = build_services(config)
    result = services.ingestion.delete_file(args.user, args.filename)
    print(f"Deleted {result.records_deleted} chunks of {result.filename}")
    return 0


def cmd_files(args: argparse.Namespace, config: ServerConfig) -> int:
    services = build_services(config)
    for entry in services.ingestion.list_files(args.user):
        print(f"{entry.uploaded_at:%Y-%m-%d %H:%M}  {entry.filename}")
    return 0


def cmd_ask(args: argparse.Namespace, config: ServerConfig) -> int:
    services = build_services(config)
    try:
        answer = services.chat.answer(args.user, args.message)
        print(answer.text)
        if answer.sources:
            print(f"\nSources: {', '.join(answer.sources)}")
    finally:
        # The CLI exits right away; let the history write land first.
        services.chat.wait_for_pending(timeout=30)
        services.chat.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat with your documents (retrieval-augmented generation)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve --port 8000
  %(prog)s ingest report.txt notes.md --user alice
  %(prog)s ask "How did profit change?" --user alice
  %(prog)s delete report.txt --user alice
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed output"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: SERVER_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: SERVER_PORT)")
    serve.set_defaults(handler=cmd_serve)

    ingest = sub.add_parser("ingest", help="Chunk, embed and store text files")
    ingest.add_argument("files", type=Path, nargs="+", help="Text files to ingest")
    ingest.add_argument("--user", required=True, help="Owner of the documents")
    ingest.set_defaults(handler=cmd_ingest)

    delete = sub.add_parser("delete", help="Delete an ingested file")
    delete.add_argument("filename", help="File name as shown by 'files'")
    delete.add_argument("--user", required=True, help="Owner of the file")
    delete.set_defaults(handler=cmd_delete)

    files = sub.add_parser("files", help="List ingested files")
    files.add_argument("--user", required=True, help="Owner of the files")
    files.set_defaults(handler=cmd_files)

    ask = sub.add_parser("ask", help="Ask a question about your documents")
    ask.add_argument("message", help="The question")
    ask.add_argument("--user", required=True, help="Who is asking")
    ask.set_defaults(handler=cmd_ask)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else level_from_name(os.environ.get("LOG_LEVEL"))
    setup_logging(level=log_level)

    config = ServerConfig.from_env()

    try:
        return args.handler(args, config)
    except ChatAssistantError as e:
        logger.debug(format_error_chain(e))
        logger.error(e.message)
        return 1
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
