#!/usr/bin/env python3
"""
Aether CLI - Main Entry Point

Usage:
    aether                              # Start interactive mode
    aether "build a pomodoro timer"     # Run single prompt
    aether -p "prompt" -o ./my-app      # Generate into a directory
    aether replay response.txt          # Decode a saved response offline
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from rich.console import Console

from aether.core.config import settings
from aether.core.exceptions import AetherError, AIServiceError, InvalidPromptError, error_response
from aether.core.logging_config import logger, set_project_id
from aether.modules.generation.merger import apply_generated, build_actions
from aether.modules.generation.session import GenerationSession, describe_failure
from aether.modules.generation.stream_source import AnthropicStreamSource, TranscriptStreamSource
from aether.modules.storage.project_store import ProjectStore
from aether.utils.sanitize import sanitize_prompt
from aether.cli.renderer import GenerationRenderer

EXIT_COMMANDS = ["/quit", "/exit", "/q"]


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for generation runs"""
    parser = argparse.ArgumentParser(
        prog="aether",
        description="Aether - stream AI-generated web apps into a project directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  aether                                   Start interactive mode
  aether "create a React todo app"         Generate into the current directory
  aether -o ./todo "add a dark mode"       Update an existing project
  aether replay response.txt -o ./out      Decode a saved response offline

Interactive Mode:
  Each prompt updates the same project. Files the model returns replace
  the ones on disk; files it does not mention are kept.

  /quit           Exit
        """
    )

    # Positional argument for prompt
    parser.add_argument(
        "prompt",
        nargs="?",
        help="Prompt to execute (starts interactive mode if omitted)"
    )

    # Prompt flag (alternative to positional)
    parser.add_argument(
        "-p", "--prompt",
        dest="prompt_flag",
        help="Prompt to execute"
    )

    _add_common_arguments(parser)

    parser.add_argument(
        "-m", "--model",
        default=None,
        help=f"Claude model to use (default: {settings.ANTHROPIC_MODEL})"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def create_replay_parser() -> argparse.ArgumentParser:
    """Create argument parser for the replay command"""
    parser = argparse.ArgumentParser(
        prog="aether replay",
        description="Decode a saved model response as if it were streaming",
    )
    parser.add_argument("transcript", help="Path to a saved response")
    _add_common_arguments(parser)
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.REPLAY_CHUNK_SIZE,
        help=f"Characters per replayed chunk (default: {settings.REPLAY_CHUNK_SIZE})"
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=0,
        help="Pause between replayed chunks in milliseconds"
    )
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "-o", "--out",
        type=str,
        default=".",
        help="Project directory (default: current directory)"
    )
    parser.add_argument(
        "--output-format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse argv, routing ``replay`` to its own parser"""
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "replay":
        args = create_replay_parser().parse_args(argv[1:])
        args.command = "replay"
    else:
        args = create_parser().parse_args(argv)
        args.command = "generate"
    return args


class GenerationRunner:
    """Runs generations against one project directory"""

    def __init__(self, out_dir: str, console: Console, output_format: str = "text"):
        self.store = ProjectStore(out_dir)
        self.console = console
        self.output_format = output_format
        set_project_id(str(self.store.root))

    async def run(self, source, prompt: str = "") -> bool:
        """Stream one generation, merge it into the project and save it"""
        state = await self.store.load()
        renderer = GenerationRenderer(console=self.console, transient=self.output_format == "json")
        session = GenerationSession(
            state.files,
            on_steps=renderer.update,
            on_build_plan=renderer.show_build_plan,
        )

        try:
            with renderer:
                generated = await session.generate(source, prompt)
        except asyncio.CancelledError:
            session.cancel()
            raise
        except AIServiceError as e:
            self._report_failure(e, describe_failure(e))
            return False

        state = apply_generated(state, generated)
        await self.store.save(state, [f.name for f in generated.files])

        actions = build_actions(generated, session.steps)
        if self.output_format == "json":
            print(json.dumps({
                "success": True,
                "session_id": session.session_id,
                "steps": [step.to_dict() for step in session.steps],
                "files": [{"file_name": a.file_name, "line_count": a.line_count} for a in actions],
                "incomplete_files": list(generated.incomplete_files),
                "token_count": generated.token_count,
            }, indent=2))
        else:
            renderer.print_summary(generated, actions, session.elapsed_seconds)
            self.console.print(f"[green]✓ Saved to {self.store.root}[/green]")
        return True

    async def generate(self, raw_prompt: str, model: Optional[str] = None) -> bool:
        result = sanitize_prompt(raw_prompt)
        if not result.is_valid:
            self._report_failure(InvalidPromptError(result.error, result.error_code), result.error)
            return False
        return await self.run(AnthropicStreamSource(model=model), result.sanitized_prompt)

    async def run_interactive(self, model: Optional[str] = None):
        """Prompt loop; every prompt updates the same project"""
        from prompt_toolkit import PromptSession
        from prompt_toolkit.history import InMemoryHistory

        session = PromptSession(history=InMemoryHistory())
        self.console.print(f"[bold cyan]{settings.APP_NAME}[/bold cyan] [dim]· {self.store.root}[/dim]")
        self.console.print("[dim]Describe the app to build. /quit to exit.[/dim]\n")

        while True:
            try:
                prompt = await asyncio.get_event_loop().run_in_executor(
                    None,
                    lambda: session.prompt("❯ ")
                )

                if not prompt.strip():
                    continue

                if prompt.strip().lower() in EXIT_COMMANDS:
                    break

                await self.generate(prompt, model=model)
                self.console.print()

            except KeyboardInterrupt:
                self.console.print("\n[yellow]Ctrl+C to cancel, /quit to exit[/yellow]")
            except EOFError:
                break

        self.console.print("\n[cyan]Goodbye![/cyan]")

    def _report_failure(self, error: AetherError, message: str):
        if self.output_format == "json":
            print(json.dumps(error_response(error), indent=2))
        else:
            self.console.print(f"\n[red]✗ {message}[/red]")


async def replay(args: argparse.Namespace, console: Console) -> bool:
    source = await TranscriptStreamSource.from_file(
        args.transcript,
        chunk_size=args.chunk_size,
        delay_ms=args.delay_ms,
    )
    runner = GenerationRunner(args.out, console, args.output_format)
    return await runner.run(source)


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    args = parse_args(argv)
    console = Console(stderr=args.output_format == "json")

    if args.verbose:
        logger.setLevel(logging.DEBUG)
        for handler in logger.handlers:
            handler.setLevel(logging.DEBUG)

    try:
        if args.command == "replay":
            success = asyncio.run(replay(args, console))
        else:
            runner = GenerationRunner(args.out, console, args.output_format)
            prompt = args.prompt or args.prompt_flag
            if prompt:
                success = asyncio.run(runner.generate(prompt, model=args.model))
            else:
                asyncio.run(runner.run_interactive(model=args.model))
                success = True

    except KeyboardInterrupt:
        console.print("\n[yellow]Generation cancelled[/yellow]")
        sys.exit(130)
    except AetherError as e:
        if args.output_format == "json":
            print(json.dumps(error_response(e), indent=2))
        else:
            console.print(f"\n[red]✗ {e.message}[/red]")
        sys.exit(1)
    except OSError as e:
        console.print(f"\n[red]✗ {e}[/red]")
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
