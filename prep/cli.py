"""CLI interface for Prep - inspect meeting context from the terminal."""

import argparse
import json
import logging
import sys

from prep.config import Settings, get_settings
from prep.context import (
    ContextError,
    ContextRetrievalService,
    IndexingProgress,
    IndexingStage,
    Meeting,
    WeightsStorage,
)
from prep.context.weights import WIRE_KEYS


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    CYAN = "\033[36m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if verbose else logging.INFO,
    )


def print_progress(progress: IndexingProgress) -> None:
    """Single-line progress display while indexing."""
    if progress.stage == IndexingStage.INDEXING:
        print(
            f"\r{Colors.DIM}Indexing {progress.current}/{progress.total}{Colors.RESET}",
            end="",
            flush=True,
        )
    elif progress.stage == IndexingStage.COMPLETE:
        print()


def parse_weight_updates(pairs: list[str]) -> dict[str, float]:
    """Parse 'title=0.5' style arguments into weight updates."""
    by_key = {wire: name for name, wire in WIRE_KEYS.items()}
    by_key.update({name: name for name in WIRE_KEYS})

    updates = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or key.strip() not in by_key:
            raise ValueError(f"Expected one of {sorted(WIRE_KEYS.values())}=<number>, got {pair!r}")
        try:
            updates[by_key[key.strip()]] = float(value)
        except ValueError as e:
            raise ValueError(f"Weight value for '{key}' is not a number: {value!r}") from e
    return updates


def cmd_index(settings: Settings, args: argparse.Namespace) -> int:
    indexer = settings.create_indexer()
    stats = indexer.index_vault(settings.vault_path, on_progress=print_progress)

    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
    else:
        print(
            f"{Colors.GREEN}Indexed {stats.total_documents} notes{Colors.RESET}"
            f"{Colors.DIM} ({stats.skipped_files} skipped){Colors.RESET}"
        )
    return 0


def cmd_search(settings: Settings, args: argparse.Namespace) -> int:
    storage = WeightsStorage(settings.vault_path)
    indexer = settings.create_indexer(storage.get())
    indexer.index_vault(settings.vault_path)

    config = settings.context_configuration()
    if args.limit:
        config.max_results = args.limit
    service = ContextRetrievalService(indexer, storage, config)

    meeting = Meeting(
        title=args.title,
        description=args.description or "",
        attendees=args.attendee or [],
        location=args.location or "",
        topics=args.topic or [],
    )
    result = service.find_relevant_context(meeting)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    if not result.matches:
        print(f"{Colors.YELLOW}No relevant context found.{Colors.RESET}")
        return 0

    print(
        f"{Colors.BOLD}{result.total_matches} relevant notes{Colors.RESET}"
        f"{Colors.DIM} ({result.search_time_ms:.0f} ms){Colors.RESET}\n"
    )
    for match in result.matches:
        fields = ", ".join(match.matched_fields) or "index"
        print(
            f"{Colors.CYAN}{match.relevance_score:.0%}{Colors.RESET} "
            f"{Colors.BOLD}{match.document.title}{Colors.RESET} "
            f"{Colors.DIM}{match.document.path} [{fields}]{Colors.RESET}"
        )
        for snippet in match.snippets:
            print(f"    {snippet}")
    return 0


def cmd_weights(settings: Settings, args: argparse.Namespace) -> int:
    storage = WeightsStorage(settings.vault_path)

    if args.reset:
        weights = storage.reset()
    elif args.set:
        weights = storage.update(**parse_weight_updates(args.set))
    else:
        weights = storage.get()

    for key, value in weights.to_dict().items():
        print(f"{key:>16}: {value:.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prep-context",
        description="Find notes in your Obsidian vault that matter for a meeting.",
    )
    parser.add_argument("--vault", type=str, help="Vault path (defaults to VAULT_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", help="Index the vault and show stats")
    index_parser.add_argument("--json", action="store_true", help="Print stats as JSON")

    search_parser = subparsers.add_parser("search", help="Find context for a meeting")
    search_parser.add_argument("-t", "--title", required=True, help="Meeting title")
    search_parser.add_argument(
        "-a", "--attendee", action="append", help="Attendee, e.g. 'Sarah Johnson <s@acme.com>'"
    )
    search_parser.add_argument("--topic", action="append", help="Topic keyword")
    search_parser.add_argument("--description", help="Meeting description")
    search_parser.add_argument("--location", help="Meeting location")
    search_parser.add_argument("-n", "--limit", type=int, help="Maximum results")
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON")

    weights_parser = subparsers.add_parser("weights", help="Show or change relevance weights")
    weights_parser.add_argument(
        "--set", nargs="+", metavar="KEY=VALUE", help="Weights to change, e.g. title=0.5"
    )
    weights_parser.add_argument("--reset", action="store_true", help="Restore default weights")

    return parser


COMMANDS = {
    "index": cmd_index,
    "search": cmd_search,
    "weights": cmd_weights,
}


def cli(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    # Load settings
    try:
        settings = Settings(vault_path=args.vault) if args.vault else get_settings()
        logger.debug(f"Vault: {settings.vault_path}")
    except Exception as e:
        logger.error(f"{Colors.RED}Failed to load settings: {e}{Colors.RESET}")
        logger.error(
            f"{Colors.RED}Pass --vault or set VAULT_PATH in your environment or .env file.{Colors.RESET}"
        )
        return 1

    try:
        return COMMANDS[args.command](settings, args)
    except (ContextError, ValueError) as e:
        logger.error(f"{Colors.RED}Error: {e}{Colors.RESET}")
        return 1


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
