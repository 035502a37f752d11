# platform imports
import os
import time
import traceback
import psutil
import logging
import argparse
import signal
import sys

# custom imports
import lib.shared.config as config
import lib.shared.ballot as ballot
import lib.shared.nominations as nominations
import gavelinterface
import votedispatcher

Log = logging.getLogger(__name__)

Server = None

def Sighandler(signum, frame):
    if signum == signal.SIGINT or signum == signal.SIGTERM:
        global Server
        if Server != None:
            Server.Stop()

def ParseArgs(argv = None):
    argparser = argparse.ArgumentParser(prog="Gavel", description="Map and mode voting bot for MBII servers")
    argparser.add_argument("-d", "--debug", action="store_true")
    argparser.add_argument("-lf", "--logfile")
    argparser.add_argument("-c", "--config", default=CONFIG_DEFAULT_PATH)
    argparser.add_argument("--log-path", dest="logPath", help="server log to tail")
    argparser.add_argument("--rcon-ip", dest="rconIp")
    argparser.add_argument("--rcon-port", dest="rconPort", type=int)
    argparser.add_argument("--rcon-password", dest="rconPassword")
    argparser.add_argument("--bind-address", dest="bindAddress")
    argparser.add_argument("--bind-port", dest="bindPort", type=int)
    argparser.add_argument("--read-timeout", dest="readTimeout", type=float, help="seconds to wait for each rcon response chunk")
    argparser.add_argument("--voting-duration", dest="votingDuration", type=float, help="seconds a vote stays open")
    argparser.add_argument("--cooldown-duration", dest="cooldownDuration", type=float, help="seconds a player waits after their vote ends")
    argparser.add_argument("--target", type=float, help="quorum ratio of voters required, 0 < target <= 1")
    argparser.add_argument("--map-list", dest="mapListPath")
    return argparser.parse_args(argv)

CONFIG_DEFAULT_PATH = os.path.join(os.getcwd(), "gavelCfg.json")
CONFIG_FALLBACK = \
"""{
    "Name":"MBII Gavel",
    "Remote":
    {
        "address":
        {
            "ip":"localhost",
            "port":29070
        },
        "bindAddress":"localhost",
        "bindPort":0,
        "password":"rconPassword",
        "readTimeout":0.1
    },

    "logPath":"your/path/here/games.log",
    "mapListPath":"maps.txt",
    "serverFileName":"mbiided.x86.exe",
    "checkServerProcess":false,
    "logicDelay":1.0,

    "voting":
    {
        "duration":30,
        "cooldown":30,
        "target":0.6,
        "majorityAtWindowEnd":false,
        "evictCooldownOnDisconnect":false
    },

    "messagePrefix":"^5[Vote]^7: ",
    "prologueMessage":"Gavel voting is online, type vote map <name> or vote mode <mode>",
    "epilogueMessage":"Gavel voting is going offline"
}
"""

# command line flag -> config path
ARG_OVERRIDES = \
{
    "logPath"           : "logPath",
    "rconIp"            : "Remote.address.ip",
    "rconPort"          : "Remote.address.port",
    "rconPassword"      : "Remote.password",
    "bindAddress"       : "Remote.bindAddress",
    "bindPort"          : "Remote.bindPort",
    "readTimeout"       : "Remote.readTimeout",
    "votingDuration"    : "voting.duration",
    "cooldownDuration"  : "voting.cooldown",
    "target"            : "voting.target",
    "mapListPath"       : "mapListPath",
}

def ApplyArgOverrides(cfg : config.Config, args):
    for argName, cfgPath in ARG_OVERRIDES.items():
        value = getattr(args, argName, None)
        if value != None:
            Log.debug("Command line override %s = %s", cfgPath, str(value))
            cfg.SetPath(cfgPath, value)


class GavelServer:

    STATUS_SERVER_JUST_AN_ERROR = -6
    STATUS_SERVER_NOT_RUNNING = -5
    STATUS_RESOURCES_ERROR = -3
    STATUS_RCON_ERROR = -2
    STATUS_CONFIG_ERROR = -1
    STATUS_INIT = 0
    STATUS_RUNNING = 1
    STATUS_FINISHING = 2
    STATUS_FINISHED = 3
    STATUS_STOPPING = 4
    STATUS_STOPPED = 5

    @staticmethod
    def StatusString(statusId):
        if statusId == GavelServer.STATUS_INIT:
            return "Status : Initialized Ok."
        elif statusId == GavelServer.STATUS_CONFIG_ERROR:
            return "Status : Error at configuration load."
        elif statusId == GavelServer.STATUS_RESOURCES_ERROR:
            return "Status : Unable to load the map list."
        elif statusId == GavelServer.STATUS_RCON_ERROR:
            return "Status : Unable to open the server log or the rcon socket."
        elif statusId == GavelServer.STATUS_SERVER_NOT_RUNNING:
            return "Status : Server process is not running."
        elif statusId == GavelServer.STATUS_SERVER_JUST_AN_ERROR:
            return "Status : Crashed, see the log for the traceback."
        else:
            return "Status : %d." % statusId

    @staticmethod
    def ValidateConfig(cfg : config.Config) -> bool:
        if cfg == None:
            return False
        curVar = cfg.GetValue("logPath", None)
        if curVar == None or curVar == "your/path/here/games.log":
            Log.error("Config logPath is not set.")
            return False
        if cfg.GetPath("Remote.password", "") == "":
            Log.error("Config Remote.password is not set.")
            return False
        target = cfg.GetPath("voting.target", None)
        if not isinstance(target, (int, float)) or not ( 0 < target <= 1 ):
            Log.error("Config voting.target must be a number in (0, 1], got %s", str(target))
            return False
        for path in ("voting.duration", "voting.cooldown", "Remote.readTimeout", "logicDelay"):
            value = cfg.GetPath(path, None)
            if not isinstance(value, (int, float)) or value < 0:
                Log.error("Config %s must be a non negative number, got %s", path, str(value))
                return False
        return True

    def GetStatus(self):
        return self._status

    def __init__(self, args):
        self._isRunning = False
        self._isFinished = False
        self._svInterface = None
        self._args = args

        startTime = time.time()
        self._status = GavelServer.STATUS_INIT
        Log.info("Initializing Gavel...")
        self._config = config.Config.from_file(args.config, CONFIG_FALLBACK)
        if self._config == None:
            self._status = GavelServer.STATUS_CONFIG_ERROR
            return
        ApplyArgOverrides(self._config, args)

        if not GavelServer.ValidateConfig(self._config):
            self._status = GavelServer.STATUS_CONFIG_ERROR
            return

        try:
            mapList = nominations.LoadMapList(self._config.GetValue("mapListPath", "maps.txt"))
        except OSError as e:
            Log.error("Unable to load map list: %s", str(e))
            self._status = GavelServer.STATUS_RESOURCES_ERROR
            return

        self._ballot = ballot.Ballot(self._config.GetPath("voting.duration", 30),
                                     self._config.GetPath("voting.cooldown", 30),
                                     self._config.GetPath("voting.target", 0.6),
                                     nominations.BuildCatalog(mapList))

        self._svInterface = gavelinterface.RconInterface(self._config.GetPath("Remote.address.ip", "localhost"),
                                                         self._config.GetPath("Remote.address.port", 29070),
                                                         self._config.GetPath("Remote.bindAddress", "localhost"),
                                                         self._config.GetPath("Remote.password", ""),
                                                         self._config.GetValue("logPath", ""),
                                                         bindPort=self._config.GetPath("Remote.bindPort", 0),
                                                         readTimeout=self._config.GetPath("Remote.readTimeout", 0.1))
        if not self._svInterface.Open():
            Log.error("Unable to Open server interface.")
            self._status = GavelServer.STATUS_RCON_ERROR
            return

        self._dispatcher = votedispatcher.VoteDispatcher(self._svInterface, self._ballot,
                                                         majorityAtWindowEnd=self._config.GetPath("voting.majorityAtWindowEnd", False),
                                                         evictCooldownOnDisconnect=self._config.GetPath("voting.evictCooldownOnDisconnect", False),
                                                         messagePrefix=self._config.GetValue("messagePrefix", "^5[Vote]^7: "))
        self._logicDelayS = self._config.GetValue("logicDelay", 1.0)

        Log.info("Gavel initialized in %.2f seconds!" % (time.time() - startTime))

    def Start(self):
        if self._config.GetValue("checkServerProcess", False):
            svFileName = self._config.GetValue("serverFileName", "mbiided.x86.exe")
            if not svFileName in (p.info["name"] for p in psutil.process_iter(["name"])):
                if not self._args.debug:
                    self._status = GavelServer.STATUS_SERVER_NOT_RUNNING
                    Log.error("Server is not running, start the server first, terminating...")
                    return
                else:
                    Log.debug("Running in debug mode and server is offline, continuing anyway.")

        self._isRunning = True
        self._status = GavelServer.STATUS_RUNNING
        self._dispatcher.SvSay(self._config.GetValue("prologueMessage", "Gavel voting is online"))
        try:
            while self._isRunning:
                startTime = time.time()
                self.Loop()
                elapsed = time.time() - startTime
                sleepTime = self._logicDelayS - elapsed
                if sleepTime <= 0:
                    sleepTime = 0
                time.sleep(sleepTime)
        except KeyboardInterrupt:
            Log.info("Interrupt recieved.")
            self.Stop()

    def Loop(self):
        for event in self._svInterface.GetEvents():
            self._dispatcher.Event(event)
        self._dispatcher.Tick()

    def Stop(self):
        if self._isRunning:
            Log.info("Stopping Gavel...")
            self._status = GavelServer.STATUS_STOPPING
            self._isRunning = False
            self._dispatcher.SvSay(self._config.GetValue("epilogueMessage", "Gavel voting is going offline"))
            self._status = GavelServer.STATUS_STOPPED
            Log.info("Stopped.")

    def Finish(self):
        if not self._isFinished:
            Log.info("Finishing Gavel...")
            self._status = GavelServer.STATUS_FINISHING
            self.Stop()
            if self._svInterface != None:
                self._svInterface.Close()
            self._status = GavelServer.STATUS_FINISHED
            self._isFinished = True
            Log.info("Finished Gavel.")


def InitLogger(args):
    loggingMode = logging.INFO
    loggingFile = ""

    if args.debug:
        print("DEBUGGING MODE.")
        loggingMode = logging.DEBUG
    if args.logfile:
        # Add timestamp to log file so they don't get overwritten
        if os.path.exists(args.logfile):
            loggingFile = args.logfile + '-' + time.strftime("%m%d%Y_%H%M%S", time.localtime(time.time()))
        else:
            loggingFile = args.logfile
        print(f"Logging into file {loggingFile}")

    if loggingFile != "":
        logging.basicConfig(
        filename = loggingFile,
        level = loggingMode,
        filemode = 'a',
        format='%(asctime)s %(levelname)08s %(name)s %(message)s',
        )
    else:
        logging.basicConfig(
        level = loggingMode,
        format='%(asctime)s %(levelname)08s %(name)s %(message)s',
        )

def main(argv = None):
    args = ParseArgs(argv)
    InitLogger(args)
    Log.info("Gavel entry point.")
    signal.signal(signal.SIGINT, Sighandler)
    signal.signal(signal.SIGTERM, Sighandler)
    global Server
    Server = GavelServer(args)
    status = Server.GetStatus()
    if status == GavelServer.STATUS_INIT:
        try:
            Server.Start()
        except Exception as e:
            Log.error(f"ERROR occurred: Type: {type(e)}; Reason: {e}; Traceback: {traceback.format_exc()}")
            print("\n\nCRASH DETECTED, CHECK LOGS")
            Server._status = GavelServer.STATUS_SERVER_JUST_AN_ERROR
        status = Server.GetStatus()
    if status < GavelServer.STATUS_INIT:
        Log.error("Gavel stopped with error. %s" % GavelServer.StatusString(status))
    Server.Finish()
    Server = None
    return 0 if status >= GavelServer.STATUS_INIT else 1


if __name__ == "__main__":
    sys.exit(main())
