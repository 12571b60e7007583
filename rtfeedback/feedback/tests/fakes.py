"""In-memory collaborators for exercising the orchestrator without a database or network."""
import copy
import threading

from django.utils import timezone

from rtfeedback.feedback.generator import GenerationFailure
from rtfeedback.feedback.store import CachedPatternRecord
from rtfeedback.feedback.store import StoreError
from rtfeedback.feedback.tests.factories import make_pattern_set


class InMemoryPatternStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, CachedPatternRecord] = {}
        self.put_count = 0

    def get(self, participant_id):
        with self._lock:
            return self._records.get(participant_id)

    def put(self, participant_id, pattern_set, profile_hash, language, profile=None):
        record = CachedPatternRecord(
            participant_id=participant_id,
            pattern_set=copy.deepcopy(pattern_set),
            generated_at=timezone.now(),
            source_profile_hash=profile_hash,
            language=language,
            profile=profile or {},
        )
        with self._lock:
            self._records[participant_id] = record
            self.put_count += 1

    def participant_ids(self):
        with self._lock:
            return sorted(self._records)


class BrokenPatternStore:
    def get(self, participant_id):
        raise StoreError("store offline")

    def put(self, *args, **kwargs):
        raise StoreError("store offline")


class FakeGenerator:
    """Counts calls; returns *patterns* (a fresh copy each time) or raises *error*."""

    def __init__(self, patterns=None, error=None, release=None, barrier=None):
        self.patterns = patterns if patterns is not None else make_pattern_set("generated")
        self.error = error
        self.release = release
        self.barrier = barrier
        self.requests = []
        self._lock = threading.Lock()

    @property
    def calls(self):
        with self._lock:
            return len(self.requests)

    def generate(self, request):
        with self._lock:
            self.requests.append(request)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.patterns)


def failing_generator(message="generation unavailable"):
    return FakeGenerator(error=GenerationFailure(message))
