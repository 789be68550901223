"""
asyncio driver for the timed question engine.

All events (countdown ticks, user actions, and outcomes of HTTP calls) go
through one asyncio.Queue and are applied to the engine by a single consumer
task, one at a time. A timeout and a click can therefore never interleave
inside a transition; the engine's epochs decide which of them still applies.
"""
import asyncio
import logging
from typing import Callable, Optional

from app.candidate.client import TestLinkClientError, TestSessionClient
from app.candidate.engine import (
    AnswerSelected,
    CancelCountdown,
    Command,
    Event,
    InvalidTransitionError,
    LoadedTest,
    LoadFailed,
    ManualAdvance,
    ManualSubmit,
    NameSubmitted,
    StartCountdown,
    StartFailed,
    StartTest,
    SubmitAnswers,
    SubmitFailed,
    SubmitSucceeded,
    TestLoaded,
    TestStarted,
    Tick,
    TimedQuestionEngine,
)

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Something went wrong. Please reload the link."

ChangeCallback = Callable[[TimedQuestionEngine], None]


class TimedTestRunner:
    """
    Runs one test-taking attempt for a link token.

    Usage:
        runner = TimedTestRunner(client, token)
        await runner.start()
        await runner.enter_name("Ada")
        ...
        await runner.wait_finished()
        await runner.close()
    """

    def __init__(
        self,
        client: TestSessionClient,
        token: str,
        tick_interval: float = 1.0,
        on_change: Optional[ChangeCallback] = None,
        engine: Optional[TimedQuestionEngine] = None,
    ):
        self.client = client
        self.token = token
        self.tick_interval = tick_interval
        self.engine = engine or TimedQuestionEngine()
        self._on_change = on_change
        self._events: "asyncio.Queue[Event]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._ticker: Optional[asyncio.Task] = None
        self._finished = asyncio.Event()

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Start consuming events and load the test behind the token."""
        if self._consumer is not None:
            return
        self._consumer = asyncio.create_task(self._consume(), name="test-runner-consumer")
        await self._load()

    async def wait_finished(self, timeout: Optional[float] = None) -> TimedQuestionEngine:
        """Wait until the attempt is completed or has failed."""
        await asyncio.wait_for(self._finished.wait(), timeout)
        return self.engine

    async def close(self) -> None:
        """Cancel the countdown and the consumer. Safe to call more than once."""
        self._cancel_ticker()
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

    # -- user actions ----------------------------------------------------------

    async def enter_name(self, name: str) -> None:
        await self._events.put(NameSubmitted(name))

    async def select_answer(self, option: int) -> None:
        await self._events.put(AnswerSelected(option, epoch=self.engine.epoch))

    async def advance(self) -> None:
        """Press "Next".

        Raises:
            InvalidTransitionError: If "Next" is not enabled right now
        """
        if not self.engine.can_advance:
            raise InvalidTransitionError("Next is not available")
        await self._events.put(ManualAdvance(epoch=self.engine.epoch))

    async def submit(self) -> None:
        """Press "Submit".

        Raises:
            InvalidTransitionError: If "Submit" is not enabled right now
        """
        if not self.engine.can_submit:
            raise InvalidTransitionError("Submit is not available")
        await self._events.put(ManualSubmit(epoch=self.engine.epoch))

    # -- internals -------------------------------------------------------------

    async def _load(self) -> None:
        try:
            test: LoadedTest = await self.client.fetch_test(self.token)
        except TestLinkClientError as e:
            await self._events.put(LoadFailed(e.message))
        else:
            await self._events.put(TestLoaded(test))

    async def _consume(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self._apply(event)
            except Exception:
                logger.exception(f"Test runner failed while handling {type(event).__name__}")
                self.engine.abort(UNEXPECTED_ERROR_MESSAGE)
                self._cancel_ticker()
                self._finished.set()
                return
            if self.engine.is_finished:
                self._cancel_ticker()
                self._finished.set()

    async def _apply(self, event: Event) -> None:
        try:
            commands = self.engine.handle(event)
        except InvalidTransitionError as e:
            # An action that was valid when issued but not when processed
            logger.warning(f"Ignored {type(event).__name__}: {e}")
            return

        for command in commands:
            await self._execute(command)

        if self._on_change is not None:
            self._on_change(self.engine)

    async def _execute(self, command: Command) -> None:
        if isinstance(command, StartCountdown):
            self._cancel_ticker()
            self._ticker = asyncio.create_task(
                self._tick(command.epoch), name=f"countdown-{command.epoch}"
            )
        elif isinstance(command, CancelCountdown):
            self._cancel_ticker()
        elif isinstance(command, StartTest):
            try:
                await self.client.start_test(self.token, command.user_name)
            except TestLinkClientError as e:
                await self._events.put(StartFailed(e.message))
            else:
                await self._events.put(TestStarted())
        elif isinstance(command, SubmitAnswers):
            try:
                result = await self.client.submit(
                    self.token, command.user_name, command.answers
                )
            except TestLinkClientError as e:
                await self._events.put(SubmitFailed(e.message))
            else:
                await self._events.put(SubmitSucceeded(result))

    async def _tick(self, epoch: int) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            await self._events.put(Tick(epoch))

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
