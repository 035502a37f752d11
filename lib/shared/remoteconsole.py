import logging;
import re;
import socket;
from typing import Iterator;

import lib.shared.text as text;

Log = logging.getLogger(__name__);

PAYLOAD_HEADER = b"\xff\xff\xff\xff";

SVSAY_MAX_LEN = 148; # longer svsay messages get cut by the server, "say" is used instead
SAY_MAX_LEN = 950;

REGEX_HUMAN_PLAYERS = re.compile(r"\\g_humanplayers\\(?P<count>[0-9]{1,2})(?:\\|$)");

class RCON(object):
    '''
    Connectionless remote console of the game server.

    Every packet is prefixed with the out-of-band marker, admin commands are additionally wrapped
    with "rcon <password>". Responses come back as any number of datagrams with no end marker, so a
    response is read as a lazy sequence of text chunks that simply ends on the first read timeout.
    '''
    def __init__(self, address : tuple, bindAddr : str, password : str, bindPort : int = 0, readTimeout : float = 0.1):
        self._address = address;
        self._bindAddr = bindAddr;
        self._bindPort = bindPort;
        self._password = bytes(password, "UTF-8");
        self._readTimeout = readTimeout;
        self._sock = None;
        self._bytesSent = 0;
        self._bytesRead = 0;

    def __del__(self):
        self.Close();

    def Open(self) -> bool:
        if self._sock == None:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM);
            try:
                sock.bind((self._bindAddr, self._bindPort));
                sock.connect(self._address);
            except OSError:
                sock.close();
                raise;
            sock.settimeout(self._readTimeout);
            self._sock = sock;
            Log.info("RCON bound to %s, talking to %s:%d", str(self.GetLocalAddress()), self._address[0], self._address[1]);
        return True;

    def Close(self):
        if self._sock != None:
            self._sock.close();
            self._sock = None;
            Log.info("RCON closed, %d bytes sent, %d bytes read", *self.GetStats());

    def IsOpened(self) -> bool:
        return self._sock != None;

    def GetLocalAddress(self) -> tuple:
        if self._sock == None:
            return None;
        return self._sock.getsockname();

    def _Drain(self):
        # leftovers of responses nobody read would otherwise be taken as the answer to the next request
        self._sock.setblocking(False);
        try:
            while True:
                self._bytesRead += len(self._sock.recv(4096));
        except (BlockingIOError, OSError):
            pass;
        finally:
            self._sock.settimeout(self._readTimeout);

    def Receive(self, count = 4096) -> Iterator[str]:
        while self._sock != None:
            try:
                data = self._sock.recv(count);
            except socket.timeout:
                return;
            except OSError as ex:
                # ICMP port unreachable surfaces here when the server is down
                Log.debug("RCON receive stopped : %s", str(ex));
                return;
            self._bytesRead += len(data);
            yield data.decode("UTF-8", errors="replace");

    def Send(self, payload : bytes) -> Iterator[str]:
        if self._sock == None:
            Log.warning("RCON send attempted while closed");
            return iter(());
        self._Drain();
        try:
            self._bytesSent += self._sock.send(PAYLOAD_HEADER + payload);
        except OSError as ex:
            Log.error("RCON send failed : %s", str(ex));
            return iter(());
        return self.Receive();

    def RconSend(self, command) -> Iterator[str]:
        if not type(command) == bytes:
            command = bytes(command, "UTF-8");
        return self.Send(b"rcon %b %b" % (self._password, command));

    def RconRequest(self, command) -> str:
        return "".join(self.RconSend(command));

    def GetInfo(self) -> Iterator[str]:
        return self.Send(b"getinfo");

    def GetPlayerCount(self) -> int:
        for chunk in self.GetInfo():
            match = REGEX_HUMAN_PLAYERS.search(chunk);
            if match:
                return int(match.group("count"));
        return None;

    def SvSay(self, msg : str) -> str:
        if len(msg) > SVSAY_MAX_LEN:
            return self.Say(msg);
        return self.RconRequest("svsay %s" % msg);

    def Say(self, msg : str) -> str:
        return "".join(self.RconRequest("say %s" % chunk) for chunk in text.ChunkMessage(msg, SAY_MAX_LEN));

    def SvTell(self, clientId, msg : str) -> str:
        return self.RconRequest("svtell %s %s" % (str(clientId), msg));

    def MapReload(self, mapName : str) -> str:
        return self.RconRequest("map %s" % mapName);

    def MbMode(self, mode : int) -> str:
        return self.RconRequest("mbmode %i" % mode);

    def GetStats(self) -> tuple[int, int]:
        return (self._bytesSent, self._bytesRead);
