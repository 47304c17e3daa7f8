import os
import random
import tempfile

# Doit précéder tout import de `squidparty` (settings lus à l'import).
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="squidparty-tests-")
os.environ["ROUND_TIMERS_ENABLED"] = "false"
os.environ["AUTO_ADVANCE_TEAM_ROUNDS"] = "false"
os.environ["DEBUG"] = "true"

import pytest

from squidparty.services.realtime_store import RealtimeStore
from squidparty.services.session_state import GameSession
from squidparty.utils.codes import generate_code


class StubRandom(random.Random):
    """`random()` renvoie toujours la même valeur (randint/choice restent dans leurs bornes)."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def store():
    return RealtimeStore()


@pytest.fixture
def session(store):
    return GameSession.create(store, generate_code(6))


@pytest.fixture
def stub_random():
    return StubRandom
