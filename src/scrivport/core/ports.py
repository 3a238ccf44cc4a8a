from typing import Callable, Protocol

from .model import TargetId

ProgressCallback = Callable[[float, str], None]
"""(fraction in [0, 1], short status text); must be fast and non-blocking."""


class IdGenerator(Protocol):
    def new_id(self) -> TargetId:
        pass


class ResultWriter(Protocol):
    """
    Persist an imported project somewhere outside the source bundle.
    """

    def write(self, result) -> list:
        pass
