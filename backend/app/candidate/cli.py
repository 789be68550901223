"""
Terminal front end for taking a test from a link.

Usage:
    python -m app.candidate.cli https://tests.example.com/test/<token>

Type 1-4 to pick an option, "n" for Next and "s" to Submit. Each question
has its own countdown; when it runs out the test moves on by itself, and
on the last question the answers collected so far are submitted.
"""
import argparse
import asyncio
import logging
import sys
import threading
from typing import Optional

from app.candidate.client import DEFAULT_API_PREFIX, TestSessionClient, parse_test_link
from app.candidate.engine import (
    OPTIONS_PER_QUESTION,
    InvalidTransitionError,
    Phase,
    TimedQuestionEngine,
)
from app.candidate.runner import TimedTestRunner

logger = logging.getLogger(__name__)


class TerminalView:
    """Prints the engine's state whenever something visible changed."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self._last_key: Optional[tuple] = None

    def render(self, engine: TimedQuestionEngine) -> None:
        key = (engine.phase, engine.current_index, engine.name_error, engine.is_submitting)
        if key == self._last_key:
            return
        self._last_key = key

        if engine.phase == Phase.NAME_ENTRY:
            test = engine.test
            self._print(f"\n{test.name} (v{test.version})")
            self._print(
                f"{len(test.questions)} questions, "
                f"{engine.question_time_limit} seconds each."
            )
            if engine.name_error:
                self._print(engine.name_error)
            self._print("Enter your name to begin:")
        elif engine.phase == Phase.TAKING_TEST and engine.is_submitting:
            self._print("\nSubmitting...")
        elif engine.phase == Phase.TAKING_TEST:
            question = engine.current_question
            self._print(
                f"\nQuestion {engine.current_index + 1} of {len(engine.questions)} "
                f"({engine.question_time_limit}s)"
            )
            self._print(question.question)
            for number, option in enumerate(question.options, start=1):
                self._print(f"  {number}. {option}")
            action = "s = Submit" if engine.is_last_question else "n = Next"
            self._print(f"[1-4 to answer, {action}]")
        elif engine.phase == Phase.COMPLETED:
            result = engine.result
            self._print(
                f"\nTest completed. Score: {result.score}/{result.total_questions} "
                f"({result.percentage}%)"
            )
        elif engine.phase == Phase.ERROR:
            self._print(f"\nError: {engine.error}")

    def _print(self, text: str) -> None:
        print(text, file=self.out, flush=True)


def _read_lines(loop: asyncio.AbstractEventLoop, lines: "asyncio.Queue[str]") -> None:
    # Daemon thread: a pending input() must not keep the process alive
    for line in sys.stdin:
        loop.call_soon_threadsafe(lines.put_nowait, line.strip())


async def dispatch_line(runner: TimedTestRunner, line: str) -> None:
    """Translate one line of terminal input into a runner action."""
    engine = runner.engine
    try:
        if engine.phase == Phase.NAME_ENTRY:
            await runner.enter_name(line)
        elif line.lower() == "n":
            await runner.advance()
        elif line.lower() == "s":
            await runner.submit()
        elif line.isdigit():
            option = int(line)
            if not 1 <= option <= OPTIONS_PER_QUESTION:
                raise InvalidTransitionError(
                    f"Choose an option from 1 to {OPTIONS_PER_QUESTION}"
                )
            await runner.select_answer(option - 1)
    except InvalidTransitionError as e:
        print(f"Not available: {e}", flush=True)


async def run(link: str, api_prefix: str = DEFAULT_API_PREFIX) -> int:
    """
    Take the test behind `link` interactively.

    Returns:
        Process exit code: 0 when completed, 1 on error
    """
    base_url, token = parse_test_link(link)
    view = TerminalView()
    lines: "asyncio.Queue[str]" = asyncio.Queue()
    loop = asyncio.get_running_loop()
    threading.Thread(target=_read_lines, args=(loop, lines), daemon=True).start()

    async with TestSessionClient(base_url, api_prefix=api_prefix) as client:
        runner = TimedTestRunner(client, token, on_change=view.render)
        await runner.start()
        finished = asyncio.create_task(runner.wait_finished())
        try:
            while not finished.done():
                reader = asyncio.create_task(lines.get())
                done, _ = await asyncio.wait(
                    {reader, finished}, return_when=asyncio.FIRST_COMPLETED
                )
                if reader in done:
                    await dispatch_line(runner, reader.result())
                else:
                    reader.cancel()
            # Failures the runner aborted on are not reported through on_change
            view.render(runner.engine)
        finally:
            await runner.close()

    return 0 if runner.engine.phase == Phase.COMPLETED else 1


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Take a timed test from a link")
    parser.add_argument("link", help="Test link, e.g. https://host/test/<token>")
    parser.add_argument(
        "--api-prefix",
        default=DEFAULT_API_PREFIX,
        help=f"API path prefix on the server (default: {DEFAULT_API_PREFIX})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args.link, api_prefix=args.api_prefix))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
