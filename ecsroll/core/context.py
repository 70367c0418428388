import threading
import time
from typing import Optional


class DeploymentContext:
    """
    Everything one deployment run shares between its steps: which service we
    are deploying, when we must give up, and a one-shot cancellation signal.

    Use it as a context manager; leaving the ``with`` block always fires
    cancellation, so nothing started during the run outlives it::

        with DeploymentContext('default', 'myService', timeout=300) as context:
            ...

    Args:
        cluster: the name of the ECS cluster
        service: the name of the ECS service in ``cluster``

    Keyword Args:
        timeout: seconds from now until our deadline.  ``0`` or ``None`` means
            no deadline.
    """

    def __init__(self, cluster: str, service: str, timeout: Optional[float] = None) -> None:
        self.cluster = cluster
        self.service = service
        self.started_at: float = time.monotonic()
        #: Fixed here, never extended
        self.deadline: Optional[float] = None
        if timeout:
            self.deadline = self.started_at + timeout
        self.cancelled = threading.Event()

    @property
    def name(self) -> str:
        return f'{self.service}/{self.cluster}'

    def remaining(self) -> Optional[float]:
        """
        Seconds left until our deadline, never negative, or ``None`` if we have
        no deadline.
        """
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def cancel(self) -> None:
        self.cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()

    def __enter__(self) -> "DeploymentContext":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.cancel()
