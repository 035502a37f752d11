"""
Pytest fixtures for Gavel tests.
"""

import pytest

import gavelinterface
import lib.shared.ballot as ballot
import lib.shared.nominations as nominations
import votedispatcher


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeInterface(gavelinterface.IServerInterface):
    """Records every command instead of talking to a server."""

    def __init__(self, playerCount=None):
        super().__init__()
        self.playerCount = playerCount
        self.said = []
        self.told = []
        self.maps = []
        self.modes = []
        self.events = []

    def IsOpened(self) -> bool:
        return True

    def SvSay(self, text):
        self.said.append(text)
        return ""

    def SvTell(self, pid, text):
        self.told.append((pid, text))
        return ""

    def MapReload(self, mapname):
        self.maps.append(mapname)
        return ""

    def MbMode(self, mode):
        self.modes.append(mode)
        return ""

    def GetPlayerCount(self):
        return self.playerCount

    def GetEvents(self):
        events, self.events = self.events, []
        return events


MAPS = {"mb2_deathstar", "mb2_smuggler", "mb2_kamino"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> dict:
    return nominations.BuildCatalog(MAPS)


@pytest.fixture
def ballot_box(clock, catalog) -> ballot.Ballot:
    """30 second window, 30 second cooldown, 0.6 quorum."""
    return ballot.Ballot(30, 30, 0.6, catalog, clock=clock)


@pytest.fixture
def iface() -> FakeInterface:
    return FakeInterface(playerCount=5)


@pytest.fixture
def dispatcher(iface, ballot_box) -> votedispatcher.VoteDispatcher:
    return votedispatcher.VoteDispatcher(iface, ballot_box, messagePrefix="")
