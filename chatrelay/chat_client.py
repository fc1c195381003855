"""Interactive chat client for chatrelay."""

import argparse
import asyncio
import json
import logging
import time
from typing import List, Optional

from dotenv import load_dotenv

from chatrelay.agent import ChatAgent
from chatrelay.core.config import RelaySettings
from chatrelay.core.errors import ChatRelayError
from chatrelay.core.formatter import ResponseType
from chatrelay.core.memory import ConversationMemory, FileMemoryStore, InMemoryStore, MemoryStore
from chatrelay.logging_config import setup_logging
from chatrelay.utils.log_utils import redact_sensitive_data, sanitize_log_message

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="chatrelay interactive chat client")
    parser.add_argument(
        "--system-prompt", "-s",
        type=str,
        default=None,
        help="System instructions (defaults to CHATRELAY_SYSTEM_PROMPT)"
    )
    parser.add_argument(
        "--memory-file", "-m",
        type=str,
        default=None,
        help="JSON file persisting the conversation; in-memory only when omitted"
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=None,
        help="Maximum number of messages kept in memory"
    )
    parser.add_argument(
        "--response-type",
        choices=[rt.value for rt in ResponseType],
        default=ResponseType.TEXT.value,
        help="Shape of the printed response"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for rotating log files"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    return parser.parse_args(argv)


def render(response) -> str:
    if isinstance(response, str):
        return response
    return json.dumps(response, indent=2, default=str)


async def chat_loop(agent: ChatAgent, memory: ConversationMemory, store: MemoryStore) -> None:
    """Run an interactive chat session with the user."""
    start_time = time.time()
    logger.info("Starting chat session")
    print(f"\n{agent.name} ready! Type 'quit' to exit.")

    query_count = 0
    error_count = 0

    try:
        while True:
            query = input("\nQuery: ").strip()
            if query.lower() == 'quit':
                logger.info("User requested to quit chat session")
                break
            if not query:
                continue

            query_count += 1
            query_start = time.time()
            try:
                logger.debug("Processing user query", extra=redact_sensitive_data({
                    "query": query,
                    "query_number": query_count
                }))
                response = await agent.process(query, memory=memory)
                memory.save(store)
                query_duration = time.time() - query_start
                logger.debug("Query processed", extra={
                    "query_number": query_count,
                    "duration_ms": int(query_duration * 1000)
                })
                print("\n" + render(response))
            except ChatRelayError as e:
                error_count += 1
                query_duration = time.time() - query_start
                logger.error("Query processing error", extra={
                    "query_number": query_count,
                    "error": sanitize_log_message(str(e)),
                    "duration_ms": int(query_duration * 1000)
                })
                print(f"\nError processing query: {sanitize_log_message(str(e))}")
    finally:
        logger.info("Starting chat session cleanup")
        await agent.close()

        session_duration = time.time() - start_time
        logger.info("Chat session ended", extra={
            "total_queries": query_count,
            "successful_queries": query_count - error_count,
            "failed_queries": error_count,
            "duration_ms": int(session_duration * 1000)
        })


async def run_client(args: argparse.Namespace, settings: Optional[RelaySettings] = None) -> None:
    """Build the agent and memory from settings and arguments, then chat."""
    if settings is None:
        settings = RelaySettings()

    store: MemoryStore = FileMemoryStore(args.memory_file) if args.memory_file else InMemoryStore()
    capacity = args.capacity or settings.memory_capacity
    memory = ConversationMemory.load(store, capacity=capacity)
    logger.info("Memory ready", extra={
        "store": type(store).__name__,
        "capacity": capacity,
        "num_messages": len(memory)
    })

    overrides = {"response_type": args.response_type}
    if args.system_prompt:
        overrides["system_prompt"] = args.system_prompt
    agent = ChatAgent.from_settings(settings, **overrides)
    await chat_loop(agent, memory, store)


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = parse_arguments(argv)
    settings = RelaySettings()
    setup_logging(
        logging.DEBUG if args.debug else settings.log_level,
        args.log_dir or settings.log_dir
    )
    try:
        asyncio.run(run_client(args, settings))
    except ChatRelayError as e:
        logger.error("Chat client failed", extra={"error": sanitize_log_message(str(e))})
        print(f"Error: {sanitize_log_message(str(e))}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
