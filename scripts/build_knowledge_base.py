#!/usr/bin/env python3
"""
Build the knowledge base the chat agent searches.

Reads JSON-lines records ({"url": ..., "content": ..., ...}), embeds them with the
Hugging Face Inference API (HF_API_KEY) and dumps the InMemoryVectorStore to
KNOWLEDGE_BASE_PATH (default data/knowledge_base.json).

Each document's text is the whole JSON record, so what the retriever tool returns
to the agent still carries the record's url.

Run from project root:

    python scripts/build_knowledge_base.py data/articles.jsonl
    python scripts/build_knowledge_base.py data/articles.jsonl --output data/kb.json
"""

import argparse
import json
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from langchain_core.documents import Document
from langchain_core.vectorstores import InMemoryVectorStore

from app.core.config import KNOWLEDGE_BASE_PATH
from app.services.vector_store import HuggingFaceInferenceEmbeddings


def read_records(path: Path) -> list[dict]:
    """One JSON object per non-empty line; records without content are skipped."""
    records = []
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            if not isinstance(record, dict) or not str(record.get("content") or "").strip():
                print(f"  skipped line {lineno}: no content")
                continue
            records.append(record)
    return records


def to_document(record: dict) -> Document:
    return Document(
        page_content=json.dumps(record, ensure_ascii=False),
        metadata={"url": record.get("url", "")},
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Embed JSON-lines records into the chat knowledge base.")
    parser.add_argument("input", type=Path, help="JSON-lines file, one {url, content} record per line.")
    parser.add_argument(
        "--output",
        default=KNOWLEDGE_BASE_PATH,
        help=f"Where to write the vector store dump (default: {KNOWLEDGE_BASE_PATH}).",
    )
    args = parser.parse_args()

    records = read_records(args.input)
    if not records:
        print("No records to index.")
        sys.exit(1)

    store = InMemoryVectorStore(HuggingFaceInferenceEmbeddings())
    store.add_documents([to_document(r) for r in records])

    Path(args.output).parent.mkdir(parents=True, exist_ok=True)
    store.dump(args.output)
    print(f"Done. Indexed {len(records)} records into {args.output}.")


if __name__ == "__main__":
    main()
