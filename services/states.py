from enum import IntEnum


class State(IntEnum):
    """Conversation states. Question states are numbered in asking order."""

    AWAITING_DESTINATION = 1
    AWAITING_DURATION = 2
    AWAITING_TIME_OF_YEAR = 3
    AWAITING_VACATION_STYLE = 4
    AWAITING_DEPARTURE_CITY = 5
    AWAITING_CURRENCY = 6
    AWAITING_ADULTS = 7
    AWAITING_KIDS = 8
    AWAITING_LUXURY_LEVEL = 9
    AWAITING_CONFIRMATION = 10
    GENERATING = 11
    CANCELLED = 12

    @classmethod
    def first(cls) -> "State":
        return cls.AWAITING_DESTINATION

    def next(self) -> "State":
        if self >= State.AWAITING_CONFIRMATION:
            raise ValueError(f"{self.name} has no next question")
        return State(self + 1)
