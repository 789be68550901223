"""
Timed question engine for the candidate flow.

The engine is a pure finite-state machine: it consumes events and returns
the commands its driver must execute. It never sleeps, never does I/O and
holds no timers itself, which keeps every transition deterministic and
testable without a clock.

Phases: LOADING -> NAME_ENTRY -> TAKING_TEST -> COMPLETED, with ERROR
reachable from every phase before COMPLETED.

Each countdown is identified by an epoch. Ticks carry the epoch of the
countdown that produced them, and user actions carry the epoch that was
current when the user acted. Any transition that ends a countdown bumps the
epoch, so of a timeout and a click racing for the same question, whichever
is processed first wins and the other is dropped as stale.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_TIME_LIMIT = 15
OPTIONS_PER_QUESTION = 4

NAME_REQUIRED_MESSAGE = "Please enter your name"


class InvalidTransitionError(Exception):
    """An event was applied in a phase or situation that does not allow it."""


class Phase(str, enum.Enum):
    LOADING = "loading"
    NAME_ENTRY = "name-entry"
    TAKING_TEST = "taking-test"
    COMPLETED = "completed"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Question:
    id: int
    question: str
    options: Sequence[str]


@dataclass(frozen=True)
class LoadedTest:
    """Test content as served to a candidate (no correct answers)."""

    name: str
    version: str
    questions: Sequence[Question]
    session_id: int
    question_time_limit: int = DEFAULT_QUESTION_TIME_LIMIT


@dataclass(frozen=True)
class SubmissionResult:
    id: int
    score: int
    total_questions: int
    percentage: int
    completed_at: str


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TestLoaded:
    __test__ = False

    test: LoadedTest


@dataclass(frozen=True)
class LoadFailed:
    message: str


@dataclass(frozen=True)
class NameSubmitted:
    name: str


@dataclass(frozen=True)
class TestStarted:
    __test__ = False


@dataclass(frozen=True)
class StartFailed:
    message: str


@dataclass(frozen=True)
class AnswerSelected:
    option: int
    epoch: Optional[int] = None


@dataclass(frozen=True)
class Tick:
    epoch: int


@dataclass(frozen=True)
class ManualAdvance:
    epoch: Optional[int] = None


@dataclass(frozen=True)
class ManualSubmit:
    epoch: Optional[int] = None


@dataclass(frozen=True)
class SubmitSucceeded:
    result: SubmissionResult


@dataclass(frozen=True)
class SubmitFailed:
    message: str


Event = Union[
    TestLoaded,
    LoadFailed,
    NameSubmitted,
    TestStarted,
    StartFailed,
    AnswerSelected,
    Tick,
    ManualAdvance,
    ManualSubmit,
    SubmitSucceeded,
    SubmitFailed,
]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StartTest:
    """Call the start endpoint, consuming the link."""

    __test__ = False

    user_name: str


@dataclass(frozen=True)
class StartCountdown:
    """Begin ticking once per second for `epoch`, replacing any running countdown."""

    epoch: int
    seconds: int


@dataclass(frozen=True)
class CancelCountdown:
    """Stop the running countdown, if any."""


@dataclass(frozen=True)
class SubmitAnswers:
    """Call the submit endpoint with a complete answer map."""

    user_name: str
    answers: Dict[str, Optional[int]] = field(default_factory=dict)


Command = Union[StartTest, StartCountdown, CancelCountdown, SubmitAnswers]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TimedQuestionEngine:
    """
    Forward-only, per-question timed test taking.

    Usage:
        engine = TimedQuestionEngine()
        commands = engine.handle(TestLoaded(test))
        commands = engine.handle(NameSubmitted("Ada"))
        ...
    """

    def __init__(self, question_time_limit: Optional[int] = None):
        self._time_limit_override = question_time_limit
        self.phase = Phase.LOADING
        self.test: Optional[LoadedTest] = None
        self.user_name: Optional[str] = None
        self.current_index = 0
        self.answers: Dict[int, int] = {}
        self.epoch = 0
        self.seconds_left = 0
        self.is_starting = False
        self.is_submitting = False
        self.name_error: Optional[str] = None
        self.error: Optional[str] = None
        self.result: Optional[SubmissionResult] = None

    # -- derived state -----------------------------------------------------

    @property
    def question_time_limit(self) -> int:
        if self._time_limit_override is not None:
            return self._time_limit_override
        if self.test is not None:
            return self.test.question_time_limit
        return DEFAULT_QUESTION_TIME_LIMIT

    @property
    def questions(self) -> Sequence[Question]:
        return self.test.questions if self.test else ()

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase != Phase.TAKING_TEST:
            return None
        return self.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def current_answer(self) -> Optional[int]:
        question = self.current_question
        return self.answers.get(question.id) if question else None

    @property
    def can_advance(self) -> bool:
        """Whether "Next" is enabled."""
        return (
            self._accepting_actions()
            and not self.is_last_question
            and self.current_answer is not None
        )

    @property
    def can_submit(self) -> bool:
        """Whether "Submit" is enabled."""
        return (
            self._accepting_actions()
            and self.is_last_question
            and self.current_answer is not None
        )

    @property
    def is_finished(self) -> bool:
        return self.phase in (Phase.COMPLETED, Phase.ERROR)

    def answer_map(self) -> Dict[str, Optional[int]]:
        """Answers for every question, unanswered ones as None."""
        return {str(q.id): self.answers.get(q.id) for q in self.questions}

    # -- transitions -------------------------------------------------------

    def handle(self, event: Event) -> List[Command]:
        """
        Apply one event.

        Returns:
            Commands for the driver, in order

        Raises:
            InvalidTransitionError: If the event is not allowed now
        """
        if isinstance(event, Tick):
            return self._on_tick(event)
        if isinstance(event, TestLoaded):
            self._require(Phase.LOADING, event)
            if not event.test.questions:
                return self._fail("This test has no questions")
            self.test = event.test
            self.phase = Phase.NAME_ENTRY
            return []
        if isinstance(event, LoadFailed):
            self._require(Phase.LOADING, event)
            return self._fail(event.message)
        if isinstance(event, NameSubmitted):
            return self._on_name(event)
        if isinstance(event, TestStarted):
            self._require(Phase.NAME_ENTRY, event)
            self.is_starting = False
            self.phase = Phase.TAKING_TEST
            self.current_index = 0
            return self._restart_countdown()
        if isinstance(event, StartFailed):
            self._require(Phase.NAME_ENTRY, event)
            self.is_starting = False
            return self._fail(event.message)
        if isinstance(event, AnswerSelected):
            return self._on_answer(event)
        if isinstance(event, ManualAdvance):
            return self._on_manual_advance(event)
        if isinstance(event, ManualSubmit):
            return self._on_manual_submit(event)
        if isinstance(event, SubmitSucceeded):
            self._require_submitting(event)
            self.is_submitting = False
            self.result = event.result
            self.phase = Phase.COMPLETED
            return [CancelCountdown()]
        if isinstance(event, SubmitFailed):
            self._require_submitting(event)
            self.is_submitting = False
            return self._fail(event.message)
        raise InvalidTransitionError(f"Unknown event: {event!r}")

    def abort(self, message: str) -> List[Command]:
        """
        Move to ERROR from any unfinished phase, for failures the driver
        could not turn into an event. Does nothing once the attempt has finished.
        """
        if self.is_finished:
            return []
        self.is_starting = False
        self.is_submitting = False
        return self._fail(message)

    def _on_name(self, event: NameSubmitted) -> List[Command]:
        self._require(Phase.NAME_ENTRY, event)
        if self.is_starting:
            return []
        name = event.name.strip()
        if not name:
            self.name_error = NAME_REQUIRED_MESSAGE
            return []
        self.name_error = None
        self.user_name = name
        self.is_starting = True
        return [StartTest(user_name=name)]

    def _on_tick(self, event: Tick) -> List[Command]:
        if self._is_stale(event.epoch):
            return []
        self.seconds_left -= 1
        if self.seconds_left > 0:
            return []
        logger.debug(f"Question {self.current_index + 1} timed out")
        if self.is_last_question:
            return self._begin_submit()
        self.current_index += 1
        return self._restart_countdown()

    def _on_answer(self, event: AnswerSelected) -> List[Command]:
        if event.epoch is not None and self._is_stale(event.epoch):
            return []
        if not self._accepting_actions():
            raise InvalidTransitionError("No question is being answered")
        if type(event.option) is not int or not 0 <= event.option < OPTIONS_PER_QUESTION:
            raise InvalidTransitionError(f"Invalid option: {event.option!r}")
        self.answers[self.current_question.id] = event.option
        return []

    def _on_manual_advance(self, event: ManualAdvance) -> List[Command]:
        if event.epoch is not None and self._is_stale(event.epoch):
            return []
        if not self.can_advance:
            raise InvalidTransitionError(
                "Next requires an answer and is not available on the last question"
            )
        self.current_index += 1
        return self._restart_countdown()

    def _on_manual_submit(self, event: ManualSubmit) -> List[Command]:
        if event.epoch is not None and self._is_stale(event.epoch):
            return []
        if not self.can_submit:
            raise InvalidTransitionError(
                "Submit requires an answer and is only available on the last question"
            )
        return self._begin_submit()

    # -- helpers -----------------------------------------------------------

    def _accepting_actions(self) -> bool:
        return self.phase == Phase.TAKING_TEST and not self.is_submitting

    def _is_stale(self, epoch: int) -> bool:
        return not self._accepting_actions() or epoch != self.epoch

    def _restart_countdown(self) -> List[Command]:
        self.epoch += 1
        self.seconds_left = self.question_time_limit
        return [StartCountdown(epoch=self.epoch, seconds=self.seconds_left)]

    def _begin_submit(self) -> List[Command]:
        # Bumping the epoch turns any queued tick or click into a no-op
        self.epoch += 1
        self.is_submitting = True
        return [
            CancelCountdown(),
            SubmitAnswers(user_name=self.user_name or "", answers=self.answer_map()),
        ]

    def _fail(self, message: str) -> List[Command]:
        left_test = self.phase == Phase.TAKING_TEST
        self.phase = Phase.ERROR
        self.error = message
        self.epoch += 1
        return [CancelCountdown()] if left_test else []

    def _require(self, phase: Phase, event: Event) -> None:
        if self.phase != phase:
            raise InvalidTransitionError(
                f"{type(event).__name__} is not allowed in phase {self.phase.value}"
            )

    def _require_submitting(self, event: Event) -> None:
        self._require(Phase.TAKING_TEST, event)
        if not self.is_submitting:
            raise InvalidTransitionError(
                f"{type(event).__name__} received without a pending submission"
            )
