GAVEL_EVENT_TYPE_MESSAGE            = 1 # MessageEvent : clientId : str, name : str, message : str
GAVEL_EVENT_TYPE_INIT               = 2 # No need for own class, uses Event, server started a new map/round
GAVEL_EVENT_TYPE_SHUTDOWN           = 3 # No need for own class, uses Event
GAVEL_EVENT_TYPE_CLIENTCONNECT      = 4 # ClientConnectEvent : clientId : str
GAVEL_EVENT_TYPE_CLIENTDISCONNECT   = 5 # ClientDisconnectEvent : clientId : str

# every event data dict carries the log timestamp as data["minute"] and data["second"]
class Event():
    def __init__(self, type : int, data : dict):
        self.type = type
        self.data = data

    def GetTimestamp(self) -> str:
        return "%s:%s" % (self.data.get("minute", "0"), self.data.get("second", "00"))

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self.data)

class ClientConnectEvent(Event):
    def __init__(self, clientId : str, data : dict):
        self.clientId = clientId
        super().__init__(GAVEL_EVENT_TYPE_CLIENTCONNECT, data)

class ClientDisconnectEvent(Event):
    def __init__(self, clientId : str, data : dict):
        self.clientId = clientId
        super().__init__(GAVEL_EVENT_TYPE_CLIENTDISCONNECT, data)

class MessageEvent(Event):
    def __init__(self, clientId : str, name : str, message : str, data : dict):
        self.clientId = clientId
        self.name = name
        self.message = message
        super().__init__(GAVEL_EVENT_TYPE_MESSAGE, data)
