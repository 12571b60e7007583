"""Tests for generate-or-fetch orchestration, using in-memory collaborators."""
import datetime
import threading
import time
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest

from rtfeedback.feedback.generator import GenerationFailure
from rtfeedback.feedback.generator import OpenAIFeedbackGenerator
from rtfeedback.feedback.generator import TransientGenerationError
from rtfeedback.feedback.helpers.defaults import default_pattern_set
from rtfeedback.feedback.helpers.patterns import is_complete_pattern_set
from rtfeedback.feedback.helpers.singleflight import SingleFlight
from rtfeedback.feedback.orchestrator import FeedbackOrchestrator
from rtfeedback.feedback.orchestrator import get_orchestrator
from rtfeedback.feedback.registry import SCENARIO_KEYS
from rtfeedback.feedback.store import ModelPatternStore
from rtfeedback.feedback.store import StoreError
from rtfeedback.feedback.tests.factories import ParticipantProfileFactory
from rtfeedback.feedback.tests.factories import make_pattern_set
from rtfeedback.feedback.tests.fakes import BrokenPatternStore
from rtfeedback.feedback.tests.fakes import FakeGenerator
from rtfeedback.feedback.tests.fakes import InMemoryPatternStore
from rtfeedback.feedback.tests.fakes import failing_generator


def _orchestrator(generator=None, store=None, **kwargs):
    return FeedbackOrchestrator(
        store=store if store is not None else InMemoryPatternStore(),
        generator=generator if generator is not None else FakeGenerator(),
        **kwargs,
    )


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.005)


# ─────────────────────────────────────────────────────────────────────────────
# Cache hit / generate / fallback
# ─────────────────────────────────────────────────────────────────────────────

class TestResolve:
    def test_first_call_generates_and_stores(self, profile):
        store = InMemoryPatternStore()
        generator = FakeGenerator()
        result = _orchestrator(generator, store).resolve(profile)

        assert result.cached is False
        assert result.fallback is False
        assert result.participant_id == "participant-1"
        assert result.pattern_set == make_pattern_set("generated")
        assert generator.calls == 1
        stored = store.get("participant-1")
        assert stored.pattern_set == result.pattern_set
        assert stored.source_profile_hash == profile.profile_hash()
        assert stored.language == profile.language
        assert stored.profile == profile.as_dict()

    def test_second_call_is_cached_and_identical(self, profile):
        generator = FakeGenerator()
        orchestrator = _orchestrator(generator)
        first = orchestrator.resolve(profile)
        second = orchestrator.resolve(profile)

        assert second.cached is True
        assert second.fallback is False
        assert second.pattern_set == first.pattern_set
        assert generator.calls == 1

    def test_force_always_generates(self, profile):
        store = InMemoryPatternStore()
        store.put("participant-1", make_pattern_set("old"), profile.profile_hash(), language="en")
        generator = FakeGenerator(patterns=make_pattern_set("new"))

        result = _orchestrator(generator, store).resolve(profile, force=True)

        assert generator.calls == 1
        assert result.cached is False
        assert result.pattern_set == make_pattern_set("new")
        assert store.get("participant-1").pattern_set == make_pattern_set("new")

    def test_generation_request_has_profile_and_catalog_only(self, profile):
        generator = FakeGenerator()
        _orchestrator(generator).resolve(profile)
        request = generator.requests[0]
        assert request.profile == profile
        assert [entry["key"] for entry in request.scenario_catalog] == list(SCENARIO_KEYS)
        assert request.variants_per_key == 3

    def test_explicit_participant_id_wins(self, profile):
        result = _orchestrator().resolve(profile, participant_id="explicit")
        assert result.participant_id == "explicit"

    def test_new_id_assigned_when_none_supplied(self):
        profile = ParticipantProfileFactory(nickname="Sam", id=None)
        store = InMemoryPatternStore()
        result = _orchestrator(store=store).resolve(profile)
        assert result.participant_id
        assert store.get(result.participant_id) is not None

    def test_generation_failure_returns_language_fallback(self, profile):
        store = InMemoryPatternStore()
        result = _orchestrator(failing_generator(), store).resolve(profile)

        assert result.fallback is True
        assert result.cached is False
        assert result.pattern_set == default_pattern_set("en")
        assert store.get("participant-1") is None
        assert store.put_count == 0

    def test_japanese_profile_gets_japanese_fallback(self):
        profile = ParticipantProfileFactory(nickname="Sam", language="ja", id="p-ja")
        result = _orchestrator(failing_generator()).resolve(profile)
        assert result.pattern_set == default_pattern_set("ja")

    def test_incomplete_output_falls_back(self, profile):
        patterns = make_pattern_set()
        del patterns["rt_same_acc_down"]
        store = InMemoryPatternStore()
        result = _orchestrator(FakeGenerator(patterns=patterns), store).resolve(profile)

        assert result.fallback is True
        assert is_complete_pattern_set(result.pattern_set)
        assert store.put_count == 0

    def test_oversized_output_is_trimmed_and_stored(self, profile):
        patterns = make_pattern_set()
        patterns["rt_same_acc_same"].append("a fourth message")
        result = _orchestrator(FakeGenerator(patterns=patterns)).resolve(profile)
        assert result.fallback is False
        assert len(result.pattern_set["rt_same_acc_same"]) == 3

    def test_fallback_is_retried_on_next_call(self, profile):
        store = InMemoryPatternStore()
        _orchestrator(FakeGenerator(error=TransientGenerationError("timeout")), store).resolve(profile)
        result = _orchestrator(FakeGenerator(), store).resolve(profile)
        assert result.fallback is False
        assert result.cached is False

    def test_incomplete_stored_record_is_regenerated(self, profile):
        store = InMemoryPatternStore()
        broken = make_pattern_set()
        del broken["rt_short_acc_up"]
        store.put("participant-1", broken, profile.profile_hash(), language="en")
        generator = FakeGenerator()

        result = _orchestrator(generator, store).resolve(profile)

        assert generator.calls == 1
        assert result.cached is False
        assert is_complete_pattern_set(store.get("participant-1").pattern_set)

    def test_store_error_propagates(self, profile):
        with pytest.raises(StoreError):
            _orchestrator(store=BrokenPatternStore()).resolve(profile)

    def test_unexpected_generator_error_returns_fallback(self, profile, caplog):
        store = InMemoryPatternStore()
        result = _orchestrator(FakeGenerator(error=RuntimeError("bug")), store).resolve(profile)

        assert result.fallback is True
        assert result.pattern_set == default_pattern_set("en")
        assert store.get("participant-1") is None
        assert "Unexpected error generating feedback" in caplog.text

    @pytest.mark.parametrize(
        "body",
        [
            b"\xff\xfe garbage",
            b'{"choices": [{"message": {"content": {"a": 1}}}]}',
        ],
    )
    def test_malformed_api_response_returns_fallback(self, profile, body):
        mock_response = MagicMock()
        mock_response.read.return_value = body
        mock_response.__enter__ = lambda s: s
        mock_response.__exit__ = MagicMock(return_value=False)
        generator = OpenAIFeedbackGenerator(api_key="sk-test", timeout=1)

        with patch("rtfeedback.feedback.generator.urllib.request.urlopen", return_value=mock_response):
            result = _orchestrator(generator).resolve(profile)

        assert result.fallback is True
        assert result.pattern_set == default_pattern_set("en")


# ─────────────────────────────────────────────────────────────────────────────
# Cache policies
# ─────────────────────────────────────────────────────────────────────────────

class TestCachePolicies:
    def test_profile_change_ignored_by_default(self, profile):
        store = InMemoryPatternStore()
        store.put("participant-1", make_pattern_set(), "stale-hash", language="en")
        generator = FakeGenerator()
        result = _orchestrator(generator, store).resolve(profile)
        assert result.cached is True
        assert generator.calls == 0

    def test_profile_change_invalidates_when_enabled(self, profile):
        store = InMemoryPatternStore()
        store.put("participant-1", make_pattern_set(), "stale-hash", language="en")
        generator = FakeGenerator()
        result = _orchestrator(generator, store, invalidate_on_profile_change=True).resolve(profile)
        assert result.cached is False
        assert generator.calls == 1
        assert store.get("participant-1").source_profile_hash == profile.profile_hash()

    def test_same_profile_hits_when_invalidation_enabled(self, profile):
        store = InMemoryPatternStore()
        store.put("participant-1", make_pattern_set(), profile.profile_hash(), language="en")
        result = _orchestrator(store=store, invalidate_on_profile_change=True).resolve(profile)
        assert result.cached is True

    def test_expired_record_is_regenerated(self, profile):
        store = InMemoryPatternStore()
        store.put("participant-1", make_pattern_set(), profile.profile_hash(), language="en")
        generator = FakeGenerator()
        orchestrator = _orchestrator(generator, store, max_age=datetime.timedelta(seconds=-1))
        assert orchestrator.resolve(profile).cached is False
        assert generator.calls == 1

    def test_fresh_record_within_max_age_is_cached(self, profile):
        store = InMemoryPatternStore()
        store.put("participant-1", make_pattern_set(), profile.profile_hash(), language="en")
        orchestrator = _orchestrator(store=store, max_age=datetime.timedelta(hours=24))
        assert orchestrator.resolve(profile).cached is True


# ─────────────────────────────────────────────────────────────────────────────
# Concurrency
# ─────────────────────────────────────────────────────────────────────────────

def _resolve_in_threads(orchestrator, profiles, **kwargs):
    results = [None] * len(profiles)
    errors = []

    def run(index, profile):
        try:
            results[index] = orchestrator.resolve(profile, **kwargs)
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(i, p)) for i, p in enumerate(profiles)]
    for thread in threads:
        thread.start()
    return threads, results, errors


class TestConcurrency:
    def test_concurrent_calls_for_new_participant_generate_once(self, profile):
        release = threading.Event()
        generator = FakeGenerator(release=release)
        store = InMemoryPatternStore()
        flight = SingleFlight()
        orchestrator = _orchestrator(generator, store, flight=flight)

        threads, results, errors = _resolve_in_threads(orchestrator, [profile] * 8)
        _wait_for(lambda: generator.calls == 1)
        time.sleep(0.1)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert errors == []
        assert generator.calls == 1
        assert store.put_count == 1
        assert all(r.fallback is False for r in results)
        assert all(r.pattern_set == results[0].pattern_set for r in results)
        assert sum(1 for r in results if not r.cached) >= 1

    def test_concurrent_failures_share_one_fallback(self, profile):
        release = threading.Event()
        generator = FakeGenerator(error=GenerationFailure("down"), release=release)
        orchestrator = _orchestrator(generator)

        threads, results, errors = _resolve_in_threads(orchestrator, [profile] * 4)
        _wait_for(lambda: generator.calls == 1)
        time.sleep(0.05)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert errors == []
        assert generator.calls == 1
        assert all(r.fallback is True for r in results)

    def test_distinct_participants_generate_in_parallel(self):
        # Both generations must be in progress at once to pass the barrier.
        barrier = threading.Barrier(2)
        generator = FakeGenerator(barrier=barrier)
        orchestrator = _orchestrator(generator)
        profiles = [
            ParticipantProfileFactory(nickname="Ann", id="p-a"),
            ParticipantProfileFactory(nickname="Ben", id="p-b"),
        ]

        threads, results, errors = _resolve_in_threads(orchestrator, profiles)
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert generator.calls == 2
        assert {r.participant_id for r in results} == {"p-a", "p-b"}
        assert all(r.fallback is False for r in results)

    def test_waiter_gives_up_but_leader_result_is_cached(self, profile):
        release = threading.Event()
        generator = FakeGenerator(release=release)
        store = InMemoryPatternStore()
        orchestrator = _orchestrator(generator, store, wait_timeout=0.05)

        threads, results, errors = _resolve_in_threads(orchestrator, [profile])
        _wait_for(lambda: generator.calls == 1)

        impatient = orchestrator.resolve(profile)
        assert impatient.fallback is True

        release.set()
        threads[0].join(timeout=5)
        assert errors == []
        assert results[0].fallback is False
        assert orchestrator.resolve(profile).cached is True
        assert generator.calls == 1

    def test_forced_call_joining_generation_shares_it(self, profile):
        release = threading.Event()
        generator = FakeGenerator(release=release)
        orchestrator = _orchestrator(generator)

        threads, results, errors = _resolve_in_threads(orchestrator, [profile])
        _wait_for(lambda: generator.calls == 1)
        forced_threads, forced_results, forced_errors = _resolve_in_threads(orchestrator, [profile], force=True)
        time.sleep(0.05)
        release.set()
        for thread in threads + forced_threads:
            thread.join(timeout=5)

        assert errors == forced_errors == []
        assert generator.calls == 1
        assert forced_results[0].pattern_set == results[0].pattern_set
        assert forced_results[0].cached is False


# ─────────────────────────────────────────────────────────────────────────────
# get_orchestrator
# ─────────────────────────────────────────────────────────────────────────────

class TestGetOrchestrator:
    def test_reads_policy_settings(self, settings):
        settings.FEEDBACK_PATTERN_MAX_AGE = 3600
        settings.FEEDBACK_INVALIDATE_ON_PROFILE_CHANGE = True
        orchestrator = get_orchestrator()
        assert isinstance(orchestrator.store, ModelPatternStore)
        assert orchestrator.max_age == datetime.timedelta(hours=1)
        assert orchestrator.invalidate_on_profile_change is True

    def test_shares_one_flight_group(self):
        assert get_orchestrator().flight is get_orchestrator().flight

    @pytest.mark.django_db
    def test_without_api_key_resolves_to_fallback(self, profile):
        result = get_orchestrator().resolve(profile)
        assert result.fallback is True
        assert result.pattern_set == default_pattern_set("en")
