import time

class Cooldown:
    def __init__(self, seconds : float, clock = time.monotonic):
        self._durationS = float(seconds);
        self._clock = clock;
        self._startS = None; # never armed

    def GetDuration(self) -> float:
        return self._durationS;

    def Arm(self):
        self._startS = self._clock();

    def Clear(self):
        self._startS = None;

    def IsActive(self) -> bool:
        return (self.Remaining() > 0);

    def Remaining(self) -> float:
        if self._startS == None:
            return 0.0;
        left = self._durationS - (self._clock() - self._startS);
        if left < 0:
            left = 0.0;
        return left;

    def __repr__(self):
        return "[Cooldown] duration : %.2f remaining : %.2f" % (self.GetDuration(), self.Remaining());
