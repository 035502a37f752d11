import logging;
from enum import Enum, auto;
from math import ceil;
import time;

from lib.shared.cooldown import Cooldown;

Log = logging.getLogger(__name__);

VOTE_ERROR_TYPE         = 1 # category is not in the nomination catalog
VOTE_ERROR_NOMINATION   = 2 # value is not allowed for the category
VOTE_ERROR_PROGRESS     = 3 # session state precondition violated, or undecided majority
VOTE_ERROR_VOTERS       = 4 # no registered voters, session must be reset
VOTE_ERROR_COOLDOWN     = 5 # voter cooldown or voting window still running, see remaining

class VoteError(Exception):
    kind = 0

class VoteTypeError(VoteError):
    kind = VOTE_ERROR_TYPE

class VoteNominationError(VoteError):
    kind = VOTE_ERROR_NOMINATION

class VoteProgressError(VoteError):
    kind = VOTE_ERROR_PROGRESS

class VoteVotersError(VoteError):
    kind = VOTE_ERROR_VOTERS

class VoteCooldownError(VoteError):
    kind = VOTE_ERROR_COOLDOWN
    def __init__(self, remaining : float):
        self.remaining = remaining
        super().__init__("cooldown for %.2f seconds" % remaining)


class VoteResultType(Enum):
    """Outcome kind of a resolved ballot"""
    RESULT_NONE = auto()
    RESULT_YAY  = auto()
    RESULT_NAY  = auto()

class VoteResult(object):
    def __init__(self, type : VoteResultType, category : str = None, value : str = None):
        self.type = type
        self.category = category
        self.value = value

    def IsYay(self) -> bool:
        return self.type == VoteResultType.RESULT_YAY

    def IsNay(self) -> bool:
        return self.type == VoteResultType.RESULT_NAY

    def IsUndecided(self) -> bool:
        return self.type == VoteResultType.RESULT_NONE

    def __repr__(self):
        if self.IsYay():
            return "VoteResult(yay, %s '%s')" % (self.category, self.value)
        return "VoteResult(%s)" % ("nay" if self.IsNay() else "none")


class Ballot(object):
    '''
    The single voting session of the server.

    One proposal (category, value) can be voted on at a time. Every voter who starts a vote
    is put in cooldown for the configured cooldown plus the voting window, so the restriction
    always outlives the vote it started. Cooldowns persist between sessions, cast votes do not.

    Failures are raised as VoteError subclasses and never change state.
    '''
    def __init__(self, votingDuration : float, cooldownDuration : float, target : float, nominations : dict, clock = time.monotonic):
        if not ( 0 < target <= 1 ):
            raise ValueError("Quorum target ratio must be in (0, 1], got %s" % str(target));
        self._clock = clock;
        self._voting = False;
        self._votingWindow = Cooldown(votingDuration, clock);
        self._voters = 0;
        self._yays = 0;
        self._nays = 0;
        self._playerVote = {};
        self._playerCooldown = {};
        self._cooldownDuration = cooldownDuration + votingDuration;
        self._target = target;
        self._nominations = { category : frozenset(values) for category, values in nominations.items() };
        self._category = "";
        self._proposal = "";

    def _Reset(self):
        self._voting = False;
        self._yays = 0;
        self._nays = 0;
        self._votingWindow.Clear();
        self._playerVote.clear();

    def _RequireVoting(self):
        if not self._voting:
            raise VoteProgressError("No vote in progress");

    def StartVoting(self, voterId : str, category : str, proposal : str):
        if self.IsUserInCooldown(voterId):
            raise VoteCooldownError(self.GetUserCooldown(voterId));
        if self._voting:
            raise VoteProgressError("Vote already in progress");
        if not category in self._nominations:
            raise VoteTypeError("Unknown vote category '%s'" % category);
        if not proposal in self._nominations[category]:
            raise VoteNominationError("'%s' is not a valid %s" % (proposal, category));
        self.PutUserInCooldown(voterId);
        self._votingWindow.Arm();
        self._voting = True;
        self._category = category;
        self._proposal = proposal;
        Log.info("Vote started by %s : %s '%s'", voterId, category, proposal);

    def StopVoting(self):
        self._RequireVoting();
        self._Reset();
        Log.debug("Vote session reset");

    def Vote(self, voterId : str, isYay : bool):
        self.Unvote(voterId);
        self._playerVote[voterId] = isYay;
        if isYay:
            self._yays += 1;
        else:
            self._nays += 1;

    def Unvote(self, voterId : str):
        self._RequireVoting();
        if voterId in self._playerVote:
            if self._playerVote.pop(voterId):
                self._yays -= 1;
            else:
                self._nays -= 1;

    def SetVoters(self, voters : int):
        self._RequireVoting();
        if voters < 0:
            raise ValueError("Voter count can't be negative, got %d" % voters);
        self._voters = voters;

    def IncrementVoters(self):
        self.SetVoters(self._voters + 1);

    def DecrementVoters(self):
        self.SetVoters(max(self._voters - 1, 0));

    def GetRequirements(self) -> tuple[int, int]:
        yayNeeded = ceil(self._voters * self._target);
        nayNeeded = self._voters - yayNeeded;
        # with a target of 1 every voter must say yes, a nay threshold of 0 would hand nay an instant win
        return (yayNeeded, nayNeeded if nayNeeded != 0 else 1);

    def GetResult(self, ignoreWindow : bool, majorityResult : bool) -> VoteResult:
        self._RequireVoting();
        if self._voters == 0:
            raise VoteVotersError("No registered voters");
        if self._votingWindow.IsActive() and not ignoreWindow:
            raise VoteCooldownError(self._votingWindow.Remaining());
        if majorityResult:
            if self._yays > self._nays:
                return VoteResult(VoteResultType.RESULT_YAY, self._category, self._proposal);
            elif self._nays > self._yays:
                return VoteResult(VoteResultType.RESULT_NAY);
            else:
                raise VoteProgressError("Vote is tied");
        else:
            yayNeeded, nayNeeded = self.GetRequirements();
            if self._yays > yayNeeded:
                return VoteResult(VoteResultType.RESULT_YAY, self._category, self._proposal);
            elif self._nays > nayNeeded:
                return VoteResult(VoteResultType.RESULT_NAY);
            else:
                return VoteResult(VoteResultType.RESULT_NONE);

    def IsVoting(self) -> bool:
        return self._voting;

    def GetVotes(self) -> tuple[int, int]:
        return (self._yays, self._nays);

    def GetVoters(self) -> int:
        return self._voters;

    def GetTarget(self) -> float:
        return self._target;

    def GetCategory(self) -> str:
        return self._category;

    def GetProposal(self) -> str:
        return self._proposal;

    def GetCategories(self) -> list[str]:
        return sorted(self._nominations.keys());

    def GetNominations(self, category : str) -> frozenset:
        return self._nominations.get(category, frozenset());

    def HasVoted(self, voterId : str) -> bool:
        return voterId in self._playerVote;

    def IsWindowOpen(self) -> bool:
        return self._votingWindow.IsActive();

    def GetWindowRemaining(self) -> float:
        return self._votingWindow.Remaining();

    def IsUserInCooldown(self, voterId : str) -> bool:
        cooldown = self._playerCooldown.get(voterId);
        if cooldown == None:
            self._playerCooldown[voterId] = Cooldown(self._cooldownDuration, self._clock);
            return False;
        return cooldown.IsActive();

    def GetUserCooldown(self, voterId : str) -> float:
        cooldown = self._playerCooldown.get(voterId);
        if cooldown == None:
            return 0.0;
        return cooldown.Remaining();

    def PutUserInCooldown(self, voterId : str):
        cooldown = self._playerCooldown.get(voterId);
        if cooldown == None:
            cooldown = Cooldown(self._cooldownDuration, self._clock);
            self._playerCooldown[voterId] = cooldown;
        cooldown.Arm();

    def RemoveUserCooldown(self, voterId : str):
        if voterId in self._playerCooldown:
            del self._playerCooldown[voterId];
            Log.debug("Removed cooldown for voter %s", voterId);

    def GetTrackedCooldownCount(self) -> int:
        return len(self._playerCooldown);
