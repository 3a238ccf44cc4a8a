import secrets

from ..core.ports import IdGenerator


class HexId(IdGenerator):
    def __init__(self, nbytes: int = 6):  # 6 bytes -> 12 hex chars
        self.nbytes = nbytes

    def new_id(self) -> str:
        return secrets.token_hex(self.nbytes)


class SequentialId(IdGenerator):
    """Deterministic ids ("prefix-1", "prefix-2", ...), handy for dry runs and tests."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self._n = 0

    def new_id(self) -> str:
        self._n += 1
        return f"{self.prefix}-{self._n}"
