from datetime import datetime, timedelta


class FakeClock:
    """Controllable replacement for utcnow()"""

    def __init__(self, start: datetime = datetime(2025, 1, 15, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
