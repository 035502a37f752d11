"""Tests for the vote dispatcher: chat commands, voter tracking and applying results."""

import gavelEvent
import votedispatcher

from conftest import FakeInterface


def say(dispatcher, clientId, message, name=None):
    if name is None:
        name = "Player%s" % clientId
    dispatcher.Event(gavelEvent.MessageEvent(clientId, name, message, {}))


def connect(dispatcher, clientId):
    dispatcher.Event(gavelEvent.ClientConnectEvent(clientId, {}))


def disconnect(dispatcher, clientId):
    dispatcher.Event(gavelEvent.ClientDisconnectEvent(clientId, {}))


class TestPropose:

    def test_map_nomination_opens_vote(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        assert ballot_box.IsVoting()
        assert ballot_box.GetVoters() == 5
        assert ballot_box.GetVotes() == (1, 0)
        assert "Map 'mb2_deathstar' is nominated by Player1^7!" in iface.said
        assert "4 yay vote(s) needed for motion, 3 nay vote(s) needed to deny." in iface.said

    def test_initiator_vote_alone_does_not_pass(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        assert ballot_box.IsVoting()
        assert iface.maps == []

    def test_commands_are_case_insensitive_and_colour_stripped(self, dispatcher, ballot_box):
        say(dispatcher, "1", "^1VOTE ^2Map mb2_kamino")
        assert ballot_box.IsVoting()
        assert ballot_box.GetProposal() == "mb2_kamino"

    def test_unknown_category_tells_the_player(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote gravity 800")
        assert not ballot_box.IsVoting()
        assert iface.told == [("1", "Unknown vote 'gravity', use one of: map, mode")]

    def test_unknown_map_is_announced(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_nowhere")
        assert not ballot_box.IsVoting()
        assert "Map 'mb2_nowhere' is not on the list!" in iface.said

    def test_second_proposal_is_refused_while_voting(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        say(dispatcher, "2", "vote map mb2_smuggler")
        assert ballot_box.GetProposal() == "mb2_deathstar"
        assert ("2", "Voting is currently in progress!") in iface.told

    def test_proposer_cooldown_is_told(self, dispatcher, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        for clientId in ("2", "3", "4"):
            say(dispatcher, clientId, "nay")
        say(dispatcher, "1", "vote map mb2_smuggler")
        assert len(iface.told) == 1
        assert iface.told[0][0] == "1"
        assert iface.told[0][1].startswith("You are in cooldown for ")

    def test_missing_player_count_falls_back_to_tracked_clients(self, ballot_box):
        iface = FakeInterface(playerCount=None)
        dispatcher = votedispatcher.VoteDispatcher(iface, ballot_box, messagePrefix="")
        connect(dispatcher, "2")
        say(dispatcher, "1", "vote map mb2_deathstar")
        assert ballot_box.GetVoters() == 2

    def test_messages_carry_prefix(self, ballot_box, iface):
        dispatcher = votedispatcher.VoteDispatcher(iface, ballot_box, messagePrefix="[Vote] ")
        say(dispatcher, "1", "vote map mb2_nowhere")
        assert iface.said == ["[Vote] Map 'mb2_nowhere' is not on the list!"]


class TestResolution:

    def test_quorum_yay_reloads_map(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        for clientId in ("2", "3", "4"):
            say(dispatcher, clientId, "yay")
        assert iface.maps == ["mb2_deathstar"]
        assert not ballot_box.IsVoting()
        assert "Yay vote majority, motion granted." in iface.said

    def test_progress_is_reported_after_each_vote(self, dispatcher, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        say(dispatcher, "2", "yay")
        assert iface.said[-1] == "2/4 yay - 0/3 nay"

    def test_mode_by_name_sets_mbmode(self, dispatcher, iface):
        say(dispatcher, "1", "vote mode Legends")
        for clientId in ("2", "3", "4"):
            say(dispatcher, clientId, "yay")
        assert iface.modes == [4]

    def test_mode_by_id_sets_mbmode(self, dispatcher, iface):
        say(dispatcher, "1", "vote mode 2")
        for clientId in ("2", "3", "4"):
            say(dispatcher, clientId, "yay")
        assert iface.modes == [2]

    def test_quorum_nay_denies(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        for clientId in ("2", "3", "4"):
            say(dispatcher, clientId, "nay")
        assert not ballot_box.IsVoting()
        assert iface.maps == []
        assert "Nay vote majority, motion denied." in iface.said

    def test_changed_vote_counts_once(self, dispatcher, ballot_box):
        say(dispatcher, "1", "vote map mb2_deathstar")
        say(dispatcher, "2", "yay")
        say(dispatcher, "2", "nay")
        assert ballot_box.GetVotes() == (1, 1)

    def test_vote_without_session_is_ignored(self, dispatcher, iface):
        say(dispatcher, "1", "yay")
        assert iface.said == []

    def test_tick_keeps_open_window(self, dispatcher, ballot_box, clock):
        say(dispatcher, "1", "vote map mb2_deathstar")
        clock.advance(10)
        dispatcher.Tick()
        assert ballot_box.IsVoting()

    def test_window_end_without_quorum_is_deadlock(self, dispatcher, ballot_box, iface, clock):
        say(dispatcher, "1", "vote map mb2_deathstar")
        clock.advance(30)
        dispatcher.Tick()
        assert not ballot_box.IsVoting()
        assert iface.maps == []
        assert iface.said[-1] == "Voting deadlock, motion denied."

    def test_window_end_majority_passes(self, ballot_box, iface, clock):
        dispatcher = votedispatcher.VoteDispatcher(iface, ballot_box, majorityAtWindowEnd=True, messagePrefix="")
        say(dispatcher, "1", "vote map mb2_smuggler")
        assert ballot_box.IsVoting()
        clock.advance(30)
        dispatcher.Tick()
        assert iface.maps == ["mb2_smuggler"]

    def test_window_end_majority_tie_stays_open(self, ballot_box, iface, clock):
        dispatcher = votedispatcher.VoteDispatcher(iface, ballot_box, majorityAtWindowEnd=True, messagePrefix="")
        say(dispatcher, "1", "vote map mb2_smuggler")
        say(dispatcher, "2", "nay")
        clock.advance(30)
        dispatcher.Tick()
        assert ballot_box.IsVoting()
        say(dispatcher, "3", "nay")
        assert not ballot_box.IsVoting()
        assert "Nay vote majority, motion denied." in iface.said


class TestVoterTracking:

    def test_connect_during_vote_adds_voter_once(self, dispatcher, ballot_box):
        say(dispatcher, "1", "vote map mb2_deathstar")
        connect(dispatcher, "7")
        connect(dispatcher, "7")
        assert ballot_box.GetVoters() == 6

    def test_connect_without_vote_only_tracks_client(self, dispatcher, ballot_box):
        connect(dispatcher, "7")
        assert dispatcher.GetClientManager().GetClientById("7") != None
        assert not ballot_box.IsVoting()

    def test_disconnect_removes_vote_and_voter(self, dispatcher, ballot_box):
        say(dispatcher, "1", "vote map mb2_deathstar")
        say(dispatcher, "2", "nay")
        disconnect(dispatcher, "2")
        assert ballot_box.GetVotes() == (1, 0)
        assert ballot_box.GetVoters() == 4
        assert dispatcher.GetClientManager().GetClientById("2") == None

    def test_reconnect_after_disconnect_counts_again(self, dispatcher, ballot_box):
        say(dispatcher, "1", "vote map mb2_deathstar")
        connect(dispatcher, "2")
        disconnect(dispatcher, "2")
        connect(dispatcher, "2")
        assert ballot_box.GetVoters() == 6

    def test_no_voters_left_drops_the_motion(self, ballot_box, clock):
        iface = FakeInterface(playerCount=1)
        dispatcher = votedispatcher.VoteDispatcher(iface, ballot_box, messagePrefix="")
        say(dispatcher, "1", "vote map mb2_deathstar")
        assert ballot_box.IsVoting()
        disconnect(dispatcher, "1")
        assert not ballot_box.IsVoting()
        assert iface.said[-1] == "No voters left, motion dropped."
        say(dispatcher, "2", "vote map mb2_kamino")
        assert ballot_box.GetProposal() == "mb2_kamino"

    def test_departures_can_reach_quorum_before_window_end(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        say(dispatcher, "2", "yay")
        say(dispatcher, "3", "yay")
        disconnect(dispatcher, "5")
        assert ballot_box.IsVoting()
        disconnect(dispatcher, "4")
        assert not ballot_box.IsVoting()
        assert iface.maps == ["mb2_deathstar"]

    def test_arrival_raises_voters_and_keeps_vote_open(self, dispatcher, ballot_box):
        say(dispatcher, "1", "vote map mb2_deathstar")
        say(dispatcher, "2", "yay")
        connect(dispatcher, "9")
        assert ballot_box.IsVoting()
        assert ballot_box.GetVoters() == 6

    def test_cooldown_survives_disconnect_by_default(self, dispatcher, ballot_box):
        say(dispatcher, "1", "vote map mb2_deathstar")
        disconnect(dispatcher, "1")
        assert ballot_box.IsUserInCooldown("1")

    def test_cooldown_evicted_on_disconnect_when_enabled(self, ballot_box, iface):
        dispatcher = votedispatcher.VoteDispatcher(iface, ballot_box, evictCooldownOnDisconnect=True, messagePrefix="")
        say(dispatcher, "1", "vote map mb2_deathstar")
        disconnect(dispatcher, "1")
        assert ballot_box.GetTrackedCooldownCount() == 0
        assert ballot_box.GetUserCooldown("1") == 0.0
        assert not ballot_box.IsUserInCooldown("1")

    def test_chat_updates_client_name(self, dispatcher):
        connect(dispatcher, "3")
        say(dispatcher, "3", "hello", name="^1Padawan")
        client = dispatcher.GetClientManager().GetClientById("3")
        assert client.GetName() == "^1Padawan"
        assert client.GetCleanName() == "Padawan"


class TestShutdown:

    def test_shutdown_cancels_active_vote(self, dispatcher, ballot_box, iface):
        say(dispatcher, "1", "vote map mb2_deathstar")
        dispatcher.Event(gavelEvent.Event(gavelEvent.GAVEL_EVENT_TYPE_SHUTDOWN, {}))
        assert not ballot_box.IsVoting()
        assert iface.said[-1] == "Server is changing, vote cancelled."
        assert iface.maps == []

    def test_shutdown_without_vote_is_silent(self, dispatcher, iface):
        dispatcher.Event(gavelEvent.Event(gavelEvent.GAVEL_EVENT_TYPE_SHUTDOWN, {}))
        assert iface.said == []
