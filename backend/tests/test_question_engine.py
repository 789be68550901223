"""
Tests for the timed question engine state machine.
"""
import pytest

from app.candidate.engine import (
    NAME_REQUIRED_MESSAGE,
    AnswerSelected,
    CancelCountdown,
    InvalidTransitionError,
    LoadedTest,
    LoadFailed,
    ManualAdvance,
    ManualSubmit,
    NameSubmitted,
    Phase,
    Question,
    StartCountdown,
    StartFailed,
    StartTest,
    SubmissionResult,
    SubmitAnswers,
    SubmitFailed,
    SubmitSucceeded,
    TestLoaded,
    TestStarted,
    Tick,
    TimedQuestionEngine,
)


def _loaded_test(count=3, time_limit=3):
    return LoadedTest(
        name="Python Basics",
        version="1.0",
        questions=tuple(
            Question(id=i + 1, question=f"Q{i + 1}", options=("A", "B", "C", "D"))
            for i in range(count)
        ),
        session_id=7,
        question_time_limit=time_limit,
    )


RESULT = SubmissionResult(
    id=1, score=2, total_questions=3, percentage=67, completed_at="2024-01-15T12:00:00+00:00"
)


def _taking_test(count=3, time_limit=3):
    """Engine on the first question, countdown running."""
    engine = TimedQuestionEngine()
    engine.handle(TestLoaded(_loaded_test(count, time_limit)))
    engine.handle(NameSubmitted("Ada"))
    engine.handle(TestStarted())
    return engine


def _expire_current_question(engine):
    commands = []
    for _ in range(engine.seconds_left):
        commands = engine.handle(Tick(engine.epoch))
    return commands


class TestLoading:
    """Tests for the LOADING phase."""

    def test_initial_phase(self):
        """Test that a new engine is loading."""
        engine = TimedQuestionEngine()

        assert engine.phase == Phase.LOADING
        assert engine.current_question is None

    def test_loaded(self):
        """Test that a loaded test moves to name entry."""
        engine = TimedQuestionEngine()

        commands = engine.handle(TestLoaded(_loaded_test()))

        assert commands == []
        assert engine.phase == Phase.NAME_ENTRY
        assert engine.question_time_limit == 3

    def test_load_failed(self):
        """Test that a failed load is terminal."""
        engine = TimedQuestionEngine()

        engine.handle(LoadFailed("Test link has expired"))

        assert engine.phase == Phase.ERROR
        assert engine.error == "Test link has expired"
        assert engine.is_finished

    def test_empty_test(self):
        """Test that a test without questions is an error."""
        engine = TimedQuestionEngine()

        engine.handle(TestLoaded(_loaded_test(count=0)))

        assert engine.phase == Phase.ERROR
        assert engine.error == "This test has no questions"

    def test_time_limit_override(self):
        """Test that an explicit time limit wins over the server's."""
        engine = TimedQuestionEngine(question_time_limit=1)
        engine.handle(TestLoaded(_loaded_test(time_limit=15)))

        assert engine.question_time_limit == 1


class TestNameEntry:
    """Tests for the NAME_ENTRY phase."""

    def test_blank_name(self):
        """Test that a blank name shows an error and starts nothing."""
        engine = TimedQuestionEngine()
        engine.handle(TestLoaded(_loaded_test()))

        commands = engine.handle(NameSubmitted("   "))

        assert commands == []
        assert engine.phase == Phase.NAME_ENTRY
        assert engine.name_error == NAME_REQUIRED_MESSAGE

    def test_valid_name_starts_test(self):
        """Test that a name triggers the start call once."""
        engine = TimedQuestionEngine()
        engine.handle(TestLoaded(_loaded_test()))

        commands = engine.handle(NameSubmitted("  Ada "))

        assert commands == [StartTest(user_name="Ada")]
        assert engine.is_starting
        assert engine.name_error is None

    def test_double_submit_name(self):
        """Test that a second name while starting is ignored."""
        engine = TimedQuestionEngine()
        engine.handle(TestLoaded(_loaded_test()))
        engine.handle(NameSubmitted("Ada"))

        assert engine.handle(NameSubmitted("Ada")) == []

    def test_started(self):
        """Test that a successful start shows question one with a countdown."""
        engine = TimedQuestionEngine()
        engine.handle(TestLoaded(_loaded_test()))
        engine.handle(NameSubmitted("Ada"))

        commands = engine.handle(TestStarted())

        assert engine.phase == Phase.TAKING_TEST
        assert engine.current_index == 0
        assert engine.seconds_left == 3
        assert commands == [StartCountdown(epoch=engine.epoch, seconds=3)]

    def test_start_failed(self):
        """Test that a failed start is terminal."""
        engine = TimedQuestionEngine()
        engine.handle(TestLoaded(_loaded_test()))
        engine.handle(NameSubmitted("Ada"))

        commands = engine.handle(StartFailed("This test link has already been used"))

        assert commands == []
        assert engine.phase == Phase.ERROR
        assert engine.error == "This test link has already been used"

    def test_answer_before_start(self):
        """Test that answers are refused before the test starts."""
        engine = TimedQuestionEngine()
        engine.handle(TestLoaded(_loaded_test()))

        with pytest.raises(InvalidTransitionError):
            engine.handle(AnswerSelected(0))


class TestAnswering:
    """Tests for selecting answers and manual navigation."""

    def test_select_and_change_answer(self):
        """Test that the answer can be changed while the question is shown."""
        engine = _taking_test()

        engine.handle(AnswerSelected(2))
        engine.handle(AnswerSelected(1))

        assert engine.current_answer == 1
        assert engine.answers == {1: 1}

    @pytest.mark.parametrize("option", [-1, 4, True, "1"])
    def test_invalid_option(self, option):
        """Test that only option indices 0..3 are accepted."""
        engine = _taking_test()

        with pytest.raises(InvalidTransitionError):
            engine.handle(AnswerSelected(option))

    def test_next_requires_answer(self):
        """Test that Next is disabled until an answer is chosen."""
        engine = _taking_test()

        assert not engine.can_advance
        with pytest.raises(InvalidTransitionError):
            engine.handle(ManualAdvance())

    def test_next_advances_and_restarts_countdown(self):
        """Test that Next moves forward with a fresh countdown."""
        engine = _taking_test()
        engine.handle(AnswerSelected(0))
        engine.handle(Tick(engine.epoch))
        old_epoch = engine.epoch

        commands = engine.handle(ManualAdvance())

        assert engine.current_index == 1
        assert engine.epoch == old_epoch + 1
        assert engine.seconds_left == 3
        assert commands == [StartCountdown(epoch=engine.epoch, seconds=3)]

    def test_next_unavailable_on_last_question(self):
        """Test that the last question offers Submit instead of Next."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))

        assert engine.is_last_question
        assert not engine.can_advance
        assert engine.can_submit
        with pytest.raises(InvalidTransitionError):
            engine.handle(ManualAdvance())

    def test_submit_unavailable_before_last_question(self):
        """Test that Submit is only offered on the last question."""
        engine = _taking_test()
        engine.handle(AnswerSelected(0))

        with pytest.raises(InvalidTransitionError):
            engine.handle(ManualSubmit())

    def test_submit_requires_answer(self):
        """Test that Submit is disabled until the last question is answered."""
        engine = _taking_test(count=1)

        assert not engine.can_submit
        with pytest.raises(InvalidTransitionError):
            engine.handle(ManualSubmit())

    def test_manual_submit(self):
        """Test that Submit sends every question, unanswered ones as None."""
        engine = _taking_test()
        engine.handle(AnswerSelected(0))
        engine.handle(ManualAdvance())
        _expire_current_question(engine)
        engine.handle(AnswerSelected(3))

        commands = engine.handle(ManualSubmit())

        assert commands == [
            CancelCountdown(),
            SubmitAnswers(user_name="Ada", answers={"1": 0, "2": None, "3": 3}),
        ]
        assert engine.is_submitting
        assert not engine.can_submit


class TestCountdown:
    """Tests for per-question timeouts."""

    def test_tick_counts_down(self):
        """Test that each tick removes one second."""
        engine = _taking_test()

        assert engine.handle(Tick(engine.epoch)) == []
        assert engine.seconds_left == 2

    def test_timeout_advances_without_answer(self):
        """Test that an unanswered question is left blank on timeout."""
        engine = _taking_test()

        commands = _expire_current_question(engine)

        assert engine.current_index == 1
        assert engine.answers == {}
        assert commands == [StartCountdown(epoch=engine.epoch, seconds=3)]

    def test_timeout_keeps_selected_answer(self):
        """Test that a selected answer is kept when time runs out."""
        engine = _taking_test()
        engine.handle(AnswerSelected(2))

        _expire_current_question(engine)

        assert engine.answers == {1: 2}
        assert engine.current_index == 1

    def test_timeout_on_last_question_submits(self):
        """Test that the last timeout submits what has been collected."""
        engine = _taking_test(count=2)
        engine.handle(AnswerSelected(1))
        _expire_current_question(engine)

        commands = _expire_current_question(engine)

        assert commands == [
            CancelCountdown(),
            SubmitAnswers(user_name="Ada", answers={"1": 1, "2": None}),
        ]
        assert engine.is_submitting

    def test_stale_tick_ignored(self):
        """Test that ticks from a replaced countdown do nothing."""
        engine = _taking_test()
        engine.handle(AnswerSelected(0))
        stale = engine.epoch
        engine.handle(ManualAdvance())

        assert engine.handle(Tick(stale)) == []
        assert engine.seconds_left == 3

    def test_tick_outside_test_ignored(self):
        """Test that ticks before start or after submit are dropped."""
        engine = TimedQuestionEngine()
        assert engine.handle(Tick(0)) == []

        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        engine.handle(ManualSubmit())
        assert engine.handle(Tick(engine.epoch)) == []


class TestTimeoutClickRace:
    """A timeout and a click for the same question: the first processed wins."""

    def test_click_after_timeout_is_dropped(self):
        """Test that a Next issued on a timed-out question is a no-op."""
        engine = _taking_test()
        engine.handle(AnswerSelected(0))
        clicked_epoch = engine.epoch

        _expire_current_question(engine)
        commands = engine.handle(ManualAdvance(epoch=clicked_epoch))

        assert commands == []
        assert engine.current_index == 1

    def test_timeout_after_click_is_dropped(self):
        """Test that a tick queued before Next no longer applies."""
        engine = _taking_test()
        engine.handle(AnswerSelected(0))
        for _ in range(engine.seconds_left - 1):
            engine.handle(Tick(engine.epoch))
        pending_tick = Tick(engine.epoch)

        engine.handle(ManualAdvance(epoch=engine.epoch))
        commands = engine.handle(pending_tick)

        assert commands == []
        assert engine.current_index == 1
        assert engine.seconds_left == 3

    def test_answer_for_previous_question_dropped(self):
        """Test that a late answer click does not land on the next question."""
        engine = _taking_test()
        clicked_epoch = engine.epoch
        _expire_current_question(engine)

        engine.handle(AnswerSelected(3, epoch=clicked_epoch))

        assert engine.answers == {}

    def test_submit_after_final_timeout_is_dropped(self):
        """Test that only one submission happens when both race on the last question."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        clicked_epoch = engine.epoch

        first = _expire_current_question(engine)
        second = engine.handle(ManualSubmit(epoch=clicked_epoch))

        assert any(isinstance(c, SubmitAnswers) for c in first)
        assert second == []


class TestCompletion:
    """Tests for the outcome of submission."""

    def test_submit_succeeded(self):
        """Test that a successful submission completes the attempt."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        engine.handle(ManualSubmit())

        commands = engine.handle(SubmitSucceeded(RESULT))

        assert commands == [CancelCountdown()]
        assert engine.phase == Phase.COMPLETED
        assert engine.result == RESULT
        assert engine.is_finished

    def test_submit_failed(self):
        """Test that a failed submission is terminal."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        engine.handle(ManualSubmit())

        commands = engine.handle(SubmitFailed("Network error"))

        assert commands == [CancelCountdown()]
        assert engine.phase == Phase.ERROR
        assert engine.error == "Network error"

    def test_result_without_submission(self):
        """Test that a result cannot arrive before submitting."""
        engine = _taking_test()

        with pytest.raises(InvalidTransitionError):
            engine.handle(SubmitSucceeded(RESULT))

    def test_no_actions_after_completion(self):
        """Test that answering after completion is refused."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        engine.handle(ManualSubmit())
        engine.handle(SubmitSucceeded(RESULT))

        with pytest.raises(InvalidTransitionError):
            engine.handle(AnswerSelected(1))

    def test_answer_map_complete(self):
        """Test that the answer map always covers every question."""
        engine = _taking_test(count=3)
        engine.handle(AnswerSelected(2))

        assert engine.answer_map() == {"1": 2, "2": None, "3": None}


class TestAbort:
    """Tests for ending an attempt after an unexpected failure."""

    def test_abort_while_submitting(self):
        """Test that a pending submission is abandoned and the countdown cancelled."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        engine.handle(ManualSubmit(epoch=engine.epoch))
        epoch = engine.epoch

        assert engine.abort("Something went wrong") == [CancelCountdown()]
        assert engine.phase == Phase.ERROR
        assert engine.error == "Something went wrong"
        assert engine.is_submitting is False
        assert engine.epoch > epoch

    def test_abort_during_loading(self):
        """Test that aborting before the test loaded needs no commands."""
        engine = TimedQuestionEngine()

        assert engine.abort("Something went wrong") == []
        assert engine.phase == Phase.ERROR

    def test_abort_after_completion_is_noop(self):
        """Test that a completed attempt keeps its result."""
        engine = _taking_test(count=1)
        engine.handle(AnswerSelected(0))
        engine.handle(ManualSubmit(epoch=engine.epoch))
        engine.handle(SubmitSucceeded(RESULT))

        assert engine.abort("Something went wrong") == []
        assert engine.phase == Phase.COMPLETED
        assert engine.error is None
