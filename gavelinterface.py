import os
import logging
import lib.shared.remoteconsole as remoteconsole
import logscanner
import gavelEvent

Log = logging.getLogger(__name__)


class IServerInterface():
    """
    What the vote dispatcher needs from a game server: read events, count players, talk, change map or mode.
    Command methods return the raw server response, None when the interface is not usable.
    """
    def Open(self) -> bool:
        return False

    def Close(self):
        pass

    def IsOpened(self) -> bool:
        return False

    def GetEvents(self) -> list[gavelEvent.Event]:
        return []

    def GetPlayerCount(self) -> int:
        return None

    def SvSay(self, text : str) -> str:
        return None

    def SvTell(self, pid : str, text : str) -> str:
        return None

    def MapReload(self, mapname : str) -> str:
        return None

    def MbMode(self, mode : int) -> str:
        return None


class RconInterface(IServerInterface):
    """ Events come from tailing the server log, commands go out over rcon """
    def __init__(self, ipAddress : str, port : int, bindAddr : str, password : str, logPath : str, bindPort : int = 0, readTimeout : float = 0.1):
        self._logPath = logPath
        self._scanner = logscanner.LogScanner(logPath)
        self._rcon = remoteconsole.RCON((ipAddress, port), bindAddr, password, bindPort, readTimeout)

    def __del__(self):
        self.Close()

    def IsOpened(self) -> bool:
        return self._scanner.IsOpened() and self._rcon.IsOpened()

    def Open(self) -> bool:
        if self.IsOpened():
            return True
        if not os.path.isfile(self._logPath):
            Log.error("Server log %s not found, is the logPath correct?", self._logPath)
            return False
        try:
            self._scanner.Open()
            self._rcon.Open()
        except OSError as e:
            Log.error("Unable to open server interface : %s", str(e))
            self.Close()
            return False
        return True

    def Close(self):
        self._scanner.Close()
        self._rcon.Close()

    def _Command(self, func, *args) -> str:
        if not self.IsOpened():
            Log.warning("Server interface closed, dropping %s%s", func.__name__, str(args))
            return None
        return func(*args)

    def GetEvents(self) -> list[gavelEvent.Event]:
        if not self.IsOpened():
            return []
        return self._scanner.Poll()

    def GetPlayerCount(self) -> int:
        return self._Command(self._rcon.GetPlayerCount)

    def SvSay(self, text : str) -> str:
        return self._Command(self._rcon.SvSay, text)

    def SvTell(self, pid : str, text : str) -> str:
        return self._Command(self._rcon.SvTell, pid, text)

    def MapReload(self, mapname : str) -> str:
        return self._Command(self._rcon.MapReload, mapname)

    def MbMode(self, mode : int) -> str:
        return self._Command(self._rcon.MbMode, mode)
