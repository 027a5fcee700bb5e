#!/usr/bin/env python3
"""
Stellar Skies Console Interactive CLI

A terminal front end for the conversation engine: type a question, watch
tool calls settle and the briefing stream in. Ctrl+C during a response
cancels it; Ctrl+C at the prompt exits.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Optional

from .config import config
from .conversation import Conversation, build_planner
from .orchestration.orchestrator import FinishReason
from .orchestration.prompts import PERSONA_NAME
from .tools.registry import registry
from .tracing import init_tracing_client, shutdown_tracing
from .transcript.events import (
    ErrorEvent,
    MessageFinishEvent,
    PartAppendEvent,
    PartTransitionEvent,
    TextDeltaEvent,
    TranscriptEvent,
)
from .transcript.models import PartState

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = f"""
╔════════════════════════════════════════════════════════════════╗
║                    Stellar Skies Console                        ║
║                                                                 ║
║  {PERSONA_NAME + ', lead navigator, at your service':<63}║
╚════════════════════════════════════════════════════════════════╝

Available commands:
  /help     - Show this help message
  /tools    - List available tools
  /status   - Show conversation status
  /trace    - Show the steps of the last response
  /clear    - Clear conversation history
  /quit     - Exit the CLI

Ask about weather, hazards, launch windows, sky events or what to wear.
Press Ctrl+C while a response is running to cancel it.
"""
    print(banner)


def print_tools() -> None:
    """Print available tools."""
    print("\nAvailable Tools:")
    print("─" * 64)
    print(registry.get_tools_summary())
    print()


class TerminalRenderer:
    """Prints transcript events as they arrive."""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self._tool_names: dict[int, str] = {}
        self._in_text = False

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def _end_text(self) -> None:
        if self._in_text:
            self._write("\n")
            self._in_text = False

    def render(self, event: TranscriptEvent) -> None:
        if isinstance(event, PartAppendEvent):
            if event.part.get("type") == "tool":
                self._end_text()
                name = event.part.get("toolName", "?")
                self._tool_names[event.index] = name
                self._write(f"  ⚙ {name} ...\n")
            else:
                self._end_text()
                self._write(f"\n{PERSONA_NAME}: ")
                self._in_text = True
        elif isinstance(event, TextDeltaEvent):
            self._write(event.delta)
        elif isinstance(event, PartTransitionEvent):
            name = self._tool_names.get(event.index, "?")
            if event.state == PartState.OUTPUT_AVAILABLE.value:
                summary = registry.format_output(name, event.output or {})
                self._write(f"  ✓ {name}: {summary}\n")
            elif event.state == PartState.OUTPUT_ERROR.value:
                self._write(f"  ✗ {name}: {event.errorText}\n")
        elif isinstance(event, ErrorEvent):
            self._end_text()
            self._write(f"\n[error] {event.errorText}\n")
        elif isinstance(event, MessageFinishEvent):
            self._end_text()
            if event.finishReason == FinishReason.CANCELLED.value:
                self._write("\n(response cancelled)\n")
            elif event.finishReason == FinishReason.TIMEOUT.value:
                self._write("\n(response timed out)\n")


class InteractiveCLI:
    """Interactive CLI for the Stellar Skies Console."""

    def __init__(
        self,
        planner: Optional[str] = None,
        max_steps: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        verbose: bool = False,
    ):
        self.verbose = verbose
        self.conversation = Conversation(
            planner_factory=lambda: build_planner(planner),
            max_steps=max_steps,
            timeout_seconds=timeout_seconds,
        )

    async def respond(self, query: str, renderer: Optional[TerminalRenderer] = None):
        """Submit a query and render its events until the response ends."""
        renderer = renderer or TerminalRenderer()
        loop = asyncio.get_running_loop()
        stream = self.conversation.submit(query)

        def _interrupt(signum, frame) -> None:
            loop.call_soon_threadsafe(self.conversation.cancel)

        previous = signal.signal(signal.SIGINT, _interrupt)
        try:
            async for event in stream:
                renderer.render(event)
            return await self.conversation.wait()
        finally:
            signal.signal(signal.SIGINT, previous)

    def print_status(self) -> None:
        conv = self.conversation
        print(f"\nStatus: {conv.status.value}")
        print(f"Messages: {len(conv.messages)}")
        print(f"Tool runs: {conv.tool_run_count()}")
        if conv.last_error:
            print(f"Last error: {conv.last_error}")
        print()

    def print_trace(self) -> None:
        result = self.conversation.last_result
        if result is None:
            print("\nNo trace available. Ask something first.\n")
            return
        print("\n" + "═" * 70)
        print(f"RESPONSE TRACE ({result.finish_reason.value})")
        print("═" * 70)
        for step in result.steps:
            detail = step.tool_name or step.action
            outcome = f" -> {step.outcome}" if step.outcome else ""
            print(f"  Step {step.step_number}: {detail}{outcome}")
        print()

    def clear_history(self) -> None:
        self.conversation.clear()
        print("\nConversation history cleared.\n")

    def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()

        while True:
            try:
                user_input = input(">>> ").strip()
            except KeyboardInterrupt:
                print("\n\nGoodbye!\n")
                break
            except EOFError:
                print("\nGoodbye!\n")
                break

            if not user_input:
                continue

            if user_input.startswith("/"):
                command = user_input.lower()
                if command in ("/quit", "/exit", "/q"):
                    print("\nGoodbye!\n")
                    break
                elif command in ("/help", "/h", "/?"):
                    print_banner()
                elif command == "/tools":
                    print_tools()
                elif command == "/status":
                    self.print_status()
                elif command == "/trace":
                    self.print_trace()
                elif command == "/clear":
                    self.clear_history()
                else:
                    print(f"\nUnknown command: {user_input}")
                    print("Type /help for available commands.\n")
                continue

            try:
                asyncio.run(self.respond(user_input))
            except Exception as e:
                print(f"\nError: {e}\n")
                if self.verbose:
                    logger.exception("Response failed")
            print()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Stellar Skies Console Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Start interactive mode
  %(prog)s -v                           # Start with verbose logging
  %(prog)s -q "Weather in Titan?"       # Run a single query
  %(prog)s --planner llm                # Use the language model planner
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--query", type=str, help="Run a single query and exit")
    parser.add_argument(
        "--planner",
        choices=["keyword", "llm"],
        default=None,
        help=f"Planner to use (default: {config.orchestrator.planner})",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help=f"Maximum reasoning steps per response (default: {config.orchestrator.max_steps})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Response timeout in seconds (default: {config.orchestrator.timeout_seconds})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the assistant message as JSON (with -q)",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)
    init_tracing_client(
        public_key=config.langfuse.public_key,
        secret_key=config.langfuse.secret_key,
        host=config.langfuse.host,
        debug=config.langfuse.debug,
    )

    cli = InteractiveCLI(
        planner=args.planner,
        max_steps=args.max_steps,
        timeout_seconds=args.timeout,
        verbose=args.verbose,
    )
    try:
        if args.query:
            if args.json:
                result = asyncio.run(cli.conversation.respond(args.query))
                output = {
                    "query": args.query,
                    "finishReason": result.finish_reason.value if result else None,
                    "message": cli.conversation.messages[-1].to_dict(),
                }
                print(json.dumps(output, indent=2))
            else:
                asyncio.run(cli.respond(args.query))
                print()
        else:
            cli.run()
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
