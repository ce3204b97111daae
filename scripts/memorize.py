#!/usr/bin/env python
"""Manage the memory index from the command line.

Usage:
    python -m scripts.memorize ingest docs/
    python -m scripts.memorize query "what is my name?" -k 5
    python -m scripts.memorize list "2024*"
    python -m scripts.memorize forget "llm_memory:20240101120000000::0123456789abcdef"
    python -m scripts.memorize forget-all
    python -m scripts.memorize ask "what is my name?"

Provider, store and chunking options come from the environment
(MEMORY_*, EMBEDDING_*, LLM_*, QDRANT_*).
"""

import argparse
import asyncio
import sys
from pathlib import Path

from llm_memory.config import get_settings
from llm_memory.conversation.window import ConversationWindowManager
from llm_memory.documents.loader import load_documents
from llm_memory.exceptions import LLMMemoryError
from llm_memory.llm.prompts import DEFAULT_RAG_TEMPLATE
from llm_memory.logging_config import get_logger, setup_logging
from llm_memory.memory.manager import MemoryManager
from llm_memory.rag.pipeline import RAGPipeline

logger = get_logger(__name__)


async def ingest(memory: MemoryManager, directory: Path) -> None:
    """Load every supported file under a directory and memorize it."""
    documents = load_documents("file", directory)
    logger.info(f"Loaded {len(documents)} documents from {directory}")

    keys = await memory.memorize(documents)
    print(f"Memorized {len(documents)} documents as {len(keys)} chunks")


async def query(memory: MemoryManager, text: str, k: int | None) -> None:
    """Print the records closest to a piece of text."""
    results = await memory.query(text, k=k)
    if not results:
        print("No results")
        return

    for result in results:
        print(f"[{result.score:.4f}] {result.key}")
        print(f"    {result.content[:200]}")


async def ask(memory: MemoryManager, question: str, k: int | None) -> bool:
    """Answer a question from memory. Returns False if no answer was produced."""
    conversation = ConversationWindowManager(DEFAULT_RAG_TEMPLATE)
    try:
        answer = await RAGPipeline(memory, conversation).ask(question, k=k)
    finally:
        await conversation.close()

    if answer.answer is None:
        print("No answer (see logs)")
        return False

    print(answer.answer)
    print("\nSources:")
    for source in answer.sources:
        print(f"  {source.key}")
    return True


async def run(args: argparse.Namespace) -> bool:
    """Dispatch a parsed command. Returns whether it succeeded."""
    memory = MemoryManager()
    try:
        if args.command == "ingest":
            await ingest(memory, args.directory)
        elif args.command == "query":
            await query(memory, args.text, args.k)
        elif args.command == "list":
            for key in await memory.list(args.pattern):
                print(key)
        elif args.command == "forget":
            await memory.forget(args.key)
            print(f"Forgot {args.key}")
        elif args.command == "forget-all":
            await memory.forget_all()
            print(f"Dropped index {memory.index_name}")
        elif args.command == "ask":
            return await ask(memory, args.question, args.k)
        return True
    finally:
        await memory.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Manage the llm-memory index",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (defaults to LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser("ingest", help="Memorize a directory of text files")
    ingest_parser.add_argument("directory", type=Path, help="Directory to load")

    query_parser = subparsers.add_parser("query", help="Find the closest records")
    query_parser.add_argument("text", help="Query text")
    query_parser.add_argument("-k", type=int, default=None, help="Number of results")

    list_parser = subparsers.add_parser("list", help="List record keys")
    list_parser.add_argument("pattern", nargs="?", default=None, help="Glob over key suffix")

    forget_parser = subparsers.add_parser("forget", help="Delete one record")
    forget_parser.add_argument("key", help="Record key")

    subparsers.add_parser("forget-all", help="Drop the memory index")

    ask_parser = subparsers.add_parser("ask", help="Answer a question from memory")
    ask_parser.add_argument("question", help="Question to answer")
    ask_parser.add_argument("-k", type=int, default=None, help="Records to recall")

    return parser


def main() -> None:
    """Main entry point."""
    args = build_parser().parse_args()
    setup_logging(level=args.log_level or get_settings().log_level)

    try:
        succeeded = asyncio.run(run(args))
    except LLMMemoryError as e:
        logger.error(f"{e.code.value}: {e.message}", extra={"details": e.details})
        sys.exit(1)

    sys.exit(0 if succeeded else 1)


if __name__ == "__main__":
    main()
