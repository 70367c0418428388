from typing import Optional


class DeployError(Exception):
    """
    Base class for everything that can end a deployment run.

    The orchestrator fills in :py:attr:`step`, :py:attr:`cluster`,
    :py:attr:`service` and, once the new revision exists in AWS,
    :py:attr:`task_definition` before re-raising, so the message we show the
    operator always says where things stopped.
    """

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg
        self.step: Optional[str] = None
        self.cluster: Optional[str] = None
        self.service: Optional[str] = None
        #: The ``family:revision`` of the task definition we registered, if any
        self.task_definition: Optional[str] = None

    def __str__(self) -> str:
        parts = []
        if self.service and self.cluster:
            parts.append(f'{self.service}/{self.cluster}')
        if self.step:
            parts.append(self.step)
        parts.append(self.msg)
        return ': '.join(parts)


class PlatformCallError(DeployError):
    """
    A call to AWS failed: the API returned an error or we could not reach it.
    """

    def __init__(self, operation: str, output: str) -> None:
        super().__init__(f'{operation} failed: {output}')
        self.operation = operation
        self.output = output


class ParseError(DeployError):
    """
    A document or an AWS response could not be decoded into the structure we
    expected.
    """
    pass


class RegistrationConfirmationError(ParseError):
    """
    ``register_task_definition`` succeeded but we could not read the new
    revision out of its response.  A revision may exist in AWS that nothing
    points to.
    """
    pass


class ConfigProcessingFailed(DeployError):
    """
    While loading the task definition document or performing our variable
    substitutions in it, we had a problem.
    """
    pass


class SkipConfigProcessing(Exception):
    """
    This is used to skip processing steps when looping through the variable
    substitution classes.
    """
    pass


class DeadlineExceeded(DeployError):
    """
    Our deadline passed before we got as far as updating the service.
    """
    pass


class UpdateAppliedButWaitFailed(DeployError):
    """
    The service now points at our new task definition, but it never reached a
    steady state.  This is not a rollback: ECS is still working on the
    deployment and someone needs to go look at it.
    """
    pass


class DeploymentTimedOut(UpdateAppliedButWaitFailed):
    """
    We ran out of time waiting for the service to stabilize.
    """

    def __init__(self, msg: str, elapsed: float) -> None:
        super().__init__(msg)
        self.elapsed = elapsed


class ServiceFailedToStabilize(UpdateAppliedButWaitFailed):
    """
    ECS told us the service will not stabilize (e.g. tasks keep failing to
    start).
    """

    def __init__(self, msg: str, reason: str) -> None:
        super().__init__(msg)
        self.reason = reason
