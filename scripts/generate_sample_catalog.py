"""Generate a synthetic product catalog for development.

Writes a JSON array of product records with random unit-norm embeddings
that can be imported with scripts/swipe_cli.py.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_sample_catalog.py

    Or with custom sizes:
        $ python scripts/generate_sample_catalog.py --num-products 200 --dim 64
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.catalog import (
    DEFAULT_EMBEDDING_DIM,
    DEFAULT_NUM_PRODUCTS,
    DEFAULT_RANDOM_SEED,
    generate_sample_catalog,
    save_catalog,
)


def main() -> None:
    """Generate the catalog and print a summary."""
    parser = argparse.ArgumentParser(description="Generate a synthetic product catalog")
    parser.add_argument(
        "--num-products",
        type=int,
        default=DEFAULT_NUM_PRODUCTS,
        help=f"Number of products (default: {DEFAULT_NUM_PRODUCTS})",
    )
    parser.add_argument(
        "--dim",
        type=int,
        default=DEFAULT_EMBEDDING_DIM,
        help=f"Embedding dimension (default: {DEFAULT_EMBEDDING_DIM})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_RANDOM_SEED,
        help=f"Random seed (default: {DEFAULT_RANDOM_SEED})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=str(project_root / "data" / "sample_products.json"),
        help="Output JSON path (default: data/sample_products.json)",
    )
    args = parser.parse_args()

    print(f"Generating {args.num_products} sample products (dim={args.dim})...")

    try:
        df = generate_sample_catalog(
            num_products=args.num_products,
            embedding_dim=args.dim,
            random_seed=args.seed,
        )
    except ValueError as e:
        print(f"Error generating catalog: {e}")
        sys.exit(1)

    output_path = save_catalog(df, args.output)

    print(f"\nCatalog generated successfully!")
    print(f"Saved to: {output_path}")
    print(f"\nCatalog summary:")
    print(f"  Total products: {len(df)}")
    print(f"  By category: {df['category'].value_counts().to_dict()}")
    print(f"  By gender: {df['gender'].value_counts().to_dict()}")


if __name__ == '__main__':
    main()
