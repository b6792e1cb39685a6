"""Client side of the board: API client, state, controller and renderer."""

from .api_client import ApiError, TaskApiClient
from .controller import BoardController
from .state import BoardState, TaskForm

__all__ = ["ApiError", "BoardController", "BoardState", "TaskApiClient", "TaskForm"]
