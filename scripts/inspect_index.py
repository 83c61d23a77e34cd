"""
Utility script to inspect stored strain embeddings without the vectors.

Usage:
    python -m scripts.inspect_index --limit 5 --offset 0
"""

from __future__ import annotations

import argparse
import json

from budtender.config import settings
from budtender.vector_store.chroma_store import ChromaVectorStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect stored strain embeddings in Chroma.")
    parser.add_argument("--limit", type=int, default=5, help="Number of records to show")
    parser.add_argument("--offset", type=int, default=0, help="Offset for pagination")
    parser.add_argument("--model", default=None, help="Only show records for this embedding model")
    args = parser.parse_args()

    store = ChromaVectorStore(settings.vector_store_path, settings.vector_collection)
    status = store.build_index()

    result = store.collection.get(
        where={"model": args.model} if args.model else None,
        include=["documents", "metadatas"],
        limit=args.limit,
        offset=args.offset,
    )

    ids = result.get("ids", [])
    docs = result.get("documents", []) or [""] * len(ids)
    metas = result.get("metadatas", []) or [{}] * len(ids)

    print(f"Collection {status.collection} ({status.space}): {status.count} records")
    print(f"Showing {len(ids)} records (offset={args.offset}, limit={args.limit})")
    for idx, (record_id, doc, meta) in enumerate(zip(ids, docs, metas), start=1):
        print(f"\n#{idx}: {record_id}")
        print("Metadata:", json.dumps(meta or {}, ensure_ascii=False))
        doc = doc or ""
        print("Text:", doc[:400] + ("..." if len(doc) > 400 else ""))


if __name__ == "__main__":
    main()
