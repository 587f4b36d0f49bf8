"""CLI script for driving SwipeRec against a local store snapshot.

Useful for testing and evaluation. Imports a catalog, records swipes and
prints recommendations, saving the store between invocations.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.catalog import load_catalog_records
from src.recommender.config import get_engine_config
from src.recommender.exceptions import SwipeRecException
from src.recommender.models import User, parse_gender
from src.recommender.store import InMemoryStore, snapshot_exists
from src.service.interactions import SwipeService
from src.service.logging_config import LOG_FORMATS, setup_logging

logger = logging.getLogger(__name__)


def open_store(store_dir: str) -> InMemoryStore:
    """Load the snapshot in store_dir, or start an empty store."""
    if snapshot_exists(store_dir):
        return InMemoryStore.load_snapshot(store_dir)
    logger.info(f"No snapshot in {store_dir}, starting with an empty store")
    return InMemoryStore()


def run(args: argparse.Namespace) -> None:
    store = open_store(args.store_dir)
    service = SwipeService(store, config=get_engine_config())

    if args.command == "import":
        summary = service.import_products(load_catalog_records(args.catalog))
        print(
            f"Import complete: {summary.imported} new products, "
            f"{summary.updated} updated, {summary.skipped} skipped"
        )

    elif args.command == "add-user":
        store.save_user(
            User(id=args.user_id, username=args.username, gender=parse_gender(args.gender))
        )
        print(f"Saved user {args.user_id} ({args.gender})")

    elif args.command == "swipe":
        outcome = service.record_interaction(args.user_id, args.product_id, args.type)
        print(f"Interaction {outcome.status.value}: {args.product_id} -> {outcome.interaction.type.value}")

    elif args.command == "recategorize":
        outcome = service.recategorize(args.user_id, args.product_id, args.type)
        print(f"Interaction {outcome.status.value}: {args.product_id} -> {outcome.interaction.type.value}")

    elif args.command == "recommend":
        products, scores = service.recommend(
            args.user_id, args.category, args.limit, return_scores=True
        )
        print(f"\nRecommendations for user {args.user_id} ({args.category}, method: {scores['method']}):")
        for product in products:
            line = f"  {product.id}  {product.name}"
            if args.explain and "scores" in scores:
                line += f"  score={scores['scores'][product.id]:.4f}"
            print(line)
        print()

    elif args.command == "history":
        entries = service.get_interaction_history(args.user_id, args.type, args.category)
        print(f"\nHistory for user {args.user_id} ({args.type}):")
        for entry in entries:
            print(f"  {entry.product.id}  {entry.product.name}  [{entry.interaction_type.value}]")
        print()

    store.save_snapshot(args.store_dir)


def main(argv=None) -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Record swipes and get recommendations from a local store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/swipe_cli.py import data/sample_products.json
  python scripts/swipe_cli.py add-user alice --gender female
  python scripts/swipe_cli.py swipe alice <product_id> like
  python scripts/swipe_cli.py recategorize alice <product_id> favorite
  python scripts/swipe_cli.py recommend alice clothing --limit 5 --explain
  python scripts/swipe_cli.py history alice --type liked
  python scripts/swipe_cli.py --log-format json -v recommend alice footwear
        """
    )
    parser.add_argument(
        "--store-dir",
        type=str,
        default="data/store",
        help="Directory holding the store snapshot (default: data/store)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default="text",
        help="Log output format (default: text)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a JSON catalog")
    import_parser.add_argument("catalog", help="Path to a JSON array of product records")

    user_parser = subparsers.add_parser("add-user", help="Create or replace a user")
    user_parser.add_argument("user_id")
    user_parser.add_argument("--gender", default="unisex", choices=["male", "female", "unisex"])
    user_parser.add_argument("--username", default="")

    for name in ("swipe", "recategorize"):
        swipe_parser = subparsers.add_parser(name, help=f"{name.capitalize()} an interaction")
        swipe_parser.add_argument("user_id")
        swipe_parser.add_argument("product_id")
        swipe_parser.add_argument("type", choices=["favorite", "like", "dislike", "neutral"])

    recommend_parser = subparsers.add_parser("recommend", help="Get recommendations")
    recommend_parser.add_argument("user_id")
    recommend_parser.add_argument("category", choices=["clothing", "footwear", "accessories"])
    recommend_parser.add_argument(
        "--limit", type=int, default=10, help="Number of recommendations (default: 10)"
    )
    recommend_parser.add_argument(
        "--explain", action="store_true", help="Show scores for recommendations"
    )

    history_parser = subparsers.add_parser("history", help="Show interaction history")
    history_parser.add_argument("user_id")
    history_parser.add_argument(
        "--type", default="all", choices=["favorites", "liked", "disliked", "neutral", "all"]
    )
    history_parser.add_argument(
        "--category", default=None, choices=["clothing", "footwear", "accessories"]
    )

    args = parser.parse_args(argv)

    setup_logging("INFO" if args.verbose else "WARNING", args.log_format)

    try:
        run(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except SwipeRecException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
