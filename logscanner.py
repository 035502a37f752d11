import io
import logging
import os
import re

import gavelEvent

Log = logging.getLogger(__name__)

TIMESTAMP = r"^ *(?P<minute>[0-9]+):(?P<second>[0-9]{2}) *"

REGEX_INIT          = re.compile(TIMESTAMP + r"InitGame:")
REGEX_SHUTDOWN      = re.compile(TIMESTAMP + r"ShutdownGame:")
# plain "ClientConnect: 3" and the MBII "ClientConnect: (name) ID: 3 (IP: addr)" form
REGEX_CONNECT       = re.compile(TIMESTAMP + r"ClientConnect: (?:(?P<id>[0-9]{1,2})\b|.*\bID: (?P<altId>[0-9]{1,2})\b)")
REGEX_DISCONNECT    = re.compile(TIMESTAMP + r"ClientDisconnect: (?P<id>[0-9]{1,2})\b")
REGEX_CHAT          = re.compile(TIMESTAMP + r"(?P<id>[0-9]{1,2}): say: (?P<username>.*): \"(?P<message>.*)\"")


def ParseLine(line : str) -> gavelEvent.Event:
    """ Translates a single log line into an event, None for lines the bot doesn't care about """
    match = REGEX_CHAT.match(line)
    if match:
        return gavelEvent.MessageEvent(match.group("id"), match.group("username"), match.group("message"), _Stamp(match))
    match = REGEX_CONNECT.match(line)
    if match:
        clientId = match.group("id") if match.group("id") != None else match.group("altId")
        return gavelEvent.ClientConnectEvent(clientId, _Stamp(match))
    match = REGEX_DISCONNECT.match(line)
    if match:
        return gavelEvent.ClientDisconnectEvent(match.group("id"), _Stamp(match))
    match = REGEX_INIT.match(line)
    if match:
        return gavelEvent.Event(gavelEvent.GAVEL_EVENT_TYPE_INIT, _Stamp(match))
    match = REGEX_SHUTDOWN.match(line)
    if match:
        return gavelEvent.Event(gavelEvent.GAVEL_EVENT_TYPE_SHUTDOWN, _Stamp(match))
    return None

def _Stamp(match : re.Match) -> dict:
    return { "minute" : match.group("minute"), "second" : match.group("second") }


class LogScanner(object):
    '''
    Tails the server log, only lines appended after the scanner was opened are ever parsed.

    Poll is meant to be called repeatedly from the control loop, an empty list just means nothing new was written.
    '''
    def __init__(self, logPath : str, encoding : str = "utf-8"):
        self._logPath = logPath
        self._encoding = encoding
        self._file = None
        self._pending = b''

    def __del__(self):
        self.Close()

    def Open(self):
        if self._file == None:
            self._file = open(self._logPath, "rb")
            self._file.seek(0, io.SEEK_END)
            self._pending = b''
            Log.info("Tailing server log %s from offset %d", self._logPath, self._file.tell())

    def Close(self):
        if self._file != None:
            self._file.close()
            self._file = None

    def IsOpened(self) -> bool:
        return self._file != None

    def _IsReplaced(self) -> bool:
        try:
            onDisk = os.stat(self._logPath)
        except OSError:
            # renamed away and not recreated yet, keep reading the old file
            return False
        return onDisk.st_ino != os.fstat(self._file.fileno()).st_ino

    def _ReadAvailable(self) -> list[str]:
        if os.fstat(self._file.fileno()).st_size < self._file.tell():
            Log.warning("Server log %s shrank, rewinding", self._logPath)
            self._file.seek(0, io.SEEK_SET)
            self._pending = b''
        data = self._file.read()
        if len(data) == 0:
            return []
        data = self._pending + data
        lines = data.split(b"\n")
        self._pending = lines.pop() # incomplete until its newline arrives
        return [line.rstrip(b"\r").decode(self._encoding, errors="replace") for line in lines]

    def ReadLines(self) -> list[str]:
        if self._file == None:
            return []
        lines = self._ReadAvailable()
        if self._IsReplaced():
            # rotated by rename or recreate, the new file only holds new lines
            Log.warning("Server log %s was replaced, reopening", self._logPath)
            self._file.close()
            self._file = open(self._logPath, "rb")
            self._pending = b''
            lines.extend(self._ReadAvailable())
        return lines

    def Poll(self) -> list[gavelEvent.Event]:
        events = []
        for line in self.ReadLines():
            event = ParseLine(line)
            if event != None:
                Log.debug("Log event %s", str(event))
                events.append(event)
        return events
