from typing import Protocol


class SupportsLog(Protocol):
    """
    Anything we can write progress lines to: a ``logging.Logger``, or the
    ``app.log`` handler of our cement app.
    """

    def debug(self, msg: str) -> None:
        ...

    def info(self, msg: str) -> None:
        ...

    def warning(self, msg: str) -> None:
        ...

    def error(self, msg: str) -> None:
        ...
