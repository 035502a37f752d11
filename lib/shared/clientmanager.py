import lib.shared.text as text;

class Client(object):
    def __init__(self, id : str, name : str = ""):
        self._id = id;
        self._name = name;

    def GetId(self) -> str:
        return self._id;

    def GetName(self) -> str:
        return self._name;

    def GetCleanName(self) -> str:
        return text.StripColorCodes(self._name);

    def SetName(self, name : str):
        self._name = name;

    def __repr__(self):
        return f"{self._name} (ID : {self._id})";


class ClientManager():
    def __init__(self):
        self._clients = {};

    def GetClientCount(self) -> int:
        return len(self._clients);

    def GetClientById(self, id : str) -> Client:
        return self._clients.get(id);

    # returns False if the client was already known
    def AddClient(self, client : Client) -> bool:
        if client.GetId() in self._clients:
            return False;
        self._clients[client.GetId()] = client;
        return True;

    def RemoveClientById(self, id : str) -> Client:
        return self._clients.pop(id, None);
