"""
CLI for searching strains by text query or by effect tags.

Examples:
    python -m scripts.search_query --query "something calming for sleep" --top-k 5
    python -m scripts.search_query --effects relaxed sleepy --top-k 3
"""

from __future__ import annotations

import argparse
import asyncio

from budtender.catalog import get_catalog
from budtender.config import settings
from budtender.embeddings.client import EmbeddingsClient
from budtender.rag.retriever import Retriever
from budtender.vector_store import get_vector_store


async def search(args: argparse.Namespace) -> None:
    retriever = Retriever(settings, get_vector_store(settings), EmbeddingsClient(settings), get_catalog(settings))

    if args.effects:
        results = retriever.retrieve_by_facet(args.effects, args.top_k)
    else:
        results = await retriever.retrieve_by_similarity(args.query, args.top_k)

    if not results:
        print("No results")
        return

    for idx, result in enumerate(results, start=1):
        print(f"\n#{idx} score={result.similarity:.4f} ({result.matched_by}) id={result.id}")
        print(f"{result.name} [{result.type}] THC={result.thc_percent} CBD={result.cbd_percent}")
        print("effects:", ", ".join(result.effects))
        if result.description:
            snippet = result.description[: args.snippet]
            print("text:", snippet + ("..." if len(result.description) > args.snippet else ""))


def main() -> None:
    parser = argparse.ArgumentParser(description="Search strains by similarity or effect tags.")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--query", "-q", help="Free-text query")
    group.add_argument("--effects", nargs="+", help="Any-of effect tags (in-stock only)")
    parser.add_argument("--top-k", type=int, default=5, help="How many results to return")
    parser.add_argument("--snippet", type=int, default=200, help="Description snippet length")
    args = parser.parse_args()

    asyncio.run(search(args))


if __name__ == "__main__":
    main()
