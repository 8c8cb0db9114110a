"""
Domain errors.
Routes turn GameError subclasses into 400/409 responses; LeaderboardError
never reaches a route, the controller catches it and keeps playing.
"""


class GameError(ValueError):
    pass


class InvalidPlayerNameError(GameError):
    pass


class InvalidGuessError(GameError):
    pass


class InvalidTransitionError(GameError):
    pass


class LeaderboardError(RuntimeError):
    def __init__(self, message: str, advisory: str = "Leaderboard is unavailable right now."):
        super().__init__(message)
        # short text that is safe to show the player
        self.advisory = advisory
