"""
Vote dispatcher - routes server log events into the ballot and applies the outcome

Chat commands:
    vote map <mapname>  - nominate a map
    vote mode <mode>    - nominate a game mode, by id (0-4) or name (open, legends, ...)
    yay                 - vote yes
    nay                 - vote no

While the voting window is open a vote passes as soon as the yay tally exceeds the
quorum requirement, or fails as soon as the nay tally does. When the window closes
the ballot is resolved once more, by quorum or by plain majority depending on config.
"""

import logging
import re

import gavelEvent
import gavelinterface
import lib.shared.ballot as ballot
import lib.shared.clientmanager as clientmanager
import lib.shared.nominations as nominations
import lib.shared.text as text

Log = logging.getLogger(__name__)

REGEX_CHAT_PROPOSE = re.compile(r"^vote\s+(?P<category>\S+)\s+(?P<value>\S.*)$", re.IGNORECASE)
REGEX_CHAT_VOTE = re.compile(r"^(?P<vote>yay|nay)", re.IGNORECASE)


class VoteDispatcher(object):
    def __init__(self, iface : gavelinterface.IServerInterface, ballotBox : ballot.Ballot,
                 majorityAtWindowEnd : bool = False, evictCooldownOnDisconnect : bool = False,
                 messagePrefix : str = "^5[Vote]^7: "):
        self._interface = iface
        self._ballot = ballotBox
        self._majorityAtWindowEnd = majorityAtWindowEnd
        self._evictCooldownOnDisconnect = evictCooldownOnDisconnect
        self._messagePrefix = messagePrefix
        self._clientManager = clientmanager.ClientManager()

    def SvSay(self, message : str):
        self._interface.SvSay(self._messagePrefix + message)

    def SvTell(self, clientId : str, message : str):
        self._interface.SvTell(clientId, self._messagePrefix + message)

    def GetClientManager(self) -> clientmanager.ClientManager:
        return self._clientManager

    def Event(self, event : gavelEvent.Event):
        if event.type == gavelEvent.GAVEL_EVENT_TYPE_MESSAGE:
            self.OnChatMessage(event)
        elif event.type == gavelEvent.GAVEL_EVENT_TYPE_CLIENTCONNECT:
            self.OnClientConnect(event)
        elif event.type == gavelEvent.GAVEL_EVENT_TYPE_CLIENTDISCONNECT:
            self.OnClientDisconnect(event)
        elif event.type == gavelEvent.GAVEL_EVENT_TYPE_SHUTDOWN:
            self.OnShutdown(event)
        elif event.type == gavelEvent.GAVEL_EVENT_TYPE_INIT:
            Log.debug("Server init at %s", event.GetTimestamp())

    def Tick(self):
        """Called once per loop iteration, resolves the ballot once its window has closed"""
        if self._ballot.IsVoting() and not self._ballot.IsWindowOpen():
            self.CheckVoteResult()

    def OnClientConnect(self, event : gavelEvent.ClientConnectEvent):
        # the server logs a connect for every client again on map change
        if not self._clientManager.AddClient(clientmanager.Client(event.clientId)):
            Log.debug("Client %s already known, ignoring connect", event.clientId)
            return
        if self._ballot.IsVoting():
            self._ballot.IncrementVoters()
            Log.debug("Voter joined, %d voters", self._ballot.GetVoters())
            self.CheckVoteResult()

    def OnClientDisconnect(self, event : gavelEvent.ClientDisconnectEvent):
        if self._clientManager.RemoveClientById(event.clientId) == None:
            Log.debug("Disconnect of untracked client %s", event.clientId)
        if self._evictCooldownOnDisconnect:
            self._ballot.RemoveUserCooldown(event.clientId)
            Log.debug("Tracking %d voter cooldowns", self._ballot.GetTrackedCooldownCount())
        if self._ballot.IsVoting():
            self._ballot.Unvote(event.clientId)
            self._ballot.DecrementVoters()
            Log.debug("Voter left, %d voters", self._ballot.GetVoters())
            # fewer voters can lower the quorum below the votes already cast
            self.CheckVoteResult()

    def OnShutdown(self, event : gavelEvent.Event):
        if self._ballot.IsVoting():
            Log.info("Server shutting down, cancelling %s vote", self._ballot.GetCategory())
            self._ballot.StopVoting()
            self.SvSay("Server is changing, vote cancelled.")

    def OnChatMessage(self, event : gavelEvent.MessageEvent):
        cl = self._clientManager.GetClientById(event.clientId)
        if cl == None:
            cl = clientmanager.Client(event.clientId, event.name)
            self._clientManager.AddClient(cl)
        else:
            cl.SetName(event.name)
        message = text.StripColorCodes(event.message).strip()

        match = REGEX_CHAT_PROPOSE.match(message)
        if match:
            self.HandlePropose(cl, match.group("category").lower(), match.group("value").strip())
            return

        match = REGEX_CHAT_VOTE.match(message)
        if match:
            self.HandleVote(cl, match.group("vote").lower() == "yay")

    def HandlePropose(self, cl : clientmanager.Client, category : str, value : str):
        """Handle "vote <category> <value>" """
        if category == nominations.CATEGORY_MODE:
            value = value.lower()
        try:
            self._ballot.StartVoting(cl.GetId(), category, value)
        except ballot.VoteCooldownError as e:
            self.SvTell(cl.GetId(), "You are in cooldown for %.2f seconds!" % e.remaining)
            return
        except ballot.VoteProgressError:
            self.SvTell(cl.GetId(), "Voting is currently in progress!")
            return
        except ballot.VoteTypeError:
            self.SvTell(cl.GetId(), "Unknown vote '%s', use one of: %s" % (category, ", ".join(self._ballot.GetCategories())))
            return
        except ballot.VoteNominationError:
            self.SvSay("%s '%s' is not on the list!" % (category.capitalize(), value))
            return

        self._ballot.SetVoters(self._FetchVoterCount())
        Log.info("%s nominated %s '%s' with %d voters at target %.2f", cl.GetCleanName(), category, value, self._ballot.GetVoters(), self._ballot.GetTarget())
        yayNeeded, nayNeeded = self._ballot.GetRequirements()
        self.SvSay("%s '%s' is nominated by %s^7!" % (category.capitalize(), value, cl.GetName()))
        self.SvSay("Type %s to vote yes, %s to vote no. %d seconds to vote." % (text.ColorizeText("yay", "green"), text.ColorizeText("nay", "red"), round(self._ballot.GetWindowRemaining())))
        self.SvSay("%d yay vote(s) needed for motion, %d nay vote(s) needed to deny." % (yayNeeded + 1, nayNeeded + 1))
        self._ballot.Vote(cl.GetId(), True)
        self.CheckVoteResult()

    def HandleVote(self, cl : clientmanager.Client, isYay : bool):
        """Handle "yay" and "nay" """
        try:
            self._ballot.Vote(cl.GetId(), isYay)
        except ballot.VoteProgressError:
            return
        self.PrintRequirements()
        self.CheckVoteResult()

    def PrintRequirements(self):
        yays, nays = self._ballot.GetVotes()
        yayNeeded, nayNeeded = self._ballot.GetRequirements()
        self.SvSay("%d/%d yay - %d/%d nay" % (yays, yayNeeded + 1, nays, nayNeeded + 1))

    def _FetchVoterCount(self) -> int:
        count = self._interface.GetPlayerCount()
        if count == None or count == 0:
            # the nominating player is connected, whatever the server reported
            count = max(self._clientManager.GetClientCount(), 1)
            Log.warning("Server player count unavailable, using %d tracked clients", count)
        return count

    def CheckVoteResult(self) -> bool:
        """Resolves the ballot if possible, returns True when the session was closed"""
        windowOpen = self._ballot.IsWindowOpen()
        try:
            if windowOpen:
                result = self._ballot.GetResult(True, False)
            else:
                result = self._ballot.GetResult(False, self._majorityAtWindowEnd)
        except ballot.VoteVotersError:
            Log.warning("Vote has no voters left, resetting")
            self._ballot.StopVoting()
            self.SvSay("No voters left, motion dropped.")
            return True
        except ballot.VoteProgressError:
            # majority tie, wait for someone to break it
            return False
        except ballot.VoteCooldownError:
            return False

        if result.IsUndecided() and windowOpen:
            return False
        self._ApplyResult(result)
        self._ballot.StopVoting()
        return True

    def _ApplyResult(self, result : ballot.VoteResult):
        Log.info("Vote finished with %s, tally %s", str(result), str(self._ballot.GetVotes()))
        if result.IsYay():
            self.SvSay("Yay vote majority, motion granted.")
            if result.category == nominations.CATEGORY_MAP:
                self._interface.MapReload(result.value)
            elif result.category == nominations.CATEGORY_MODE:
                self._interface.MbMode(nominations.ModeToId(result.value))
            else:
                Log.error("No server command for vote category %s", result.category)
        elif result.IsNay():
            self.SvSay("Nay vote majority, motion denied.")
        else:
            self.SvSay("Voting deadlock, motion denied.")
