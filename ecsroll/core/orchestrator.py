from contextlib import contextmanager
import threading
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from ecsroll.config import DeployConfig, load_task_definition
from ecsroll.core.context import DeploymentContext
from ecsroll.core.models import TaskDefinition
from ecsroll.core.reporter import StatusReporter, describe_service_deployments
from ecsroll.exceptions import (
    DeadlineExceeded,
    DeployError,
    DeploymentTimedOut,
    ServiceFailedToStabilize,
)
from ecsroll.types import SupportsLog

if TYPE_CHECKING:
    from ecsroll.core.api import ClusterAPI


class ServicesStableCall(threading.Thread):
    """
    Run ``ClusterAPI.wait_services_stable`` in its own thread so that the
    orchestrator can stop waiting on it when the deadline passes, whether or
    not the call itself notices.  Whatever the call raised is kept in
    :py:attr:`error` for the orchestrator to deal with, and
    :py:attr:`failed_after_deadline` says whether our deadline had already
    passed when it raised.
    """

    def __init__(self, api: "ClusterAPI", context: DeploymentContext) -> None:
        super().__init__(name=f'services-stable:{context.name}', daemon=True)
        self.api = api
        self.context = context
        self.error: Optional[Exception] = None
        self.failed_after_deadline = False

    def run(self) -> None:
        try:
            self.api.wait_services_stable(self.context.cluster, self.context.service, self.context)
        except Exception as e:  # pylint: disable=broad-except
            self.failed_after_deadline = self.context.expired
            self.error = e


class DeploymentOrchestrator:
    """
    Deploy a new task definition to an existing ECS service:

    1. Log the service's current deployments
    2. Load the task definition document
    3. Register it as a new revision
    4. Point the service at the new revision
    5. Wait for the service to become stable, logging deployment status every
       ``poll_interval`` seconds while we wait

    Any failure ends the run; we never retry.  The deadline from
    ``config.timeout`` starts when :py:meth:`run` starts and covers every
    step.  Steps 1-4 check it before they begin; step 5 stops waiting when it
    passes.

    Args:
        api: how we talk to ECS
        log: where our progress lines go

    Keyword Args:
        poll_interval: seconds between deployment status lines while waiting
        loader: builds a :py:class:`TaskDefinition` from a document path
    """

    def __init__(
        self,
        api: "ClusterAPI",
        log: SupportsLog,
        poll_interval: float = 10,
        loader: Callable[..., TaskDefinition] = load_task_definition
    ) -> None:
        self.api = api
        self.log = log
        self.poll_interval = poll_interval
        self.loader = loader
        self.context: Optional[DeploymentContext] = None
        #: What we loaded from the task definition document
        self.task_definition: Optional[TaskDefinition] = None
        #: What ECS told us it registered
        self.registered: Optional[TaskDefinition] = None
        self.reporter: Optional[StatusReporter] = None

    def info(self, msg: str) -> None:
        self.log.info(f'{self.context.name} {msg}')

    def run(self, config: DeployConfig) -> TaskDefinition:
        """
        Do one deployment.

        Raises:
            ecsroll.exceptions.DeployError: some step failed.  ``step``,
                ``cluster``, ``service`` and (if we got that far)
                ``task_definition`` are set on the exception.

        Returns:
            The task definition we registered and deployed.
        """
        with DeploymentContext(config.cluster, config.service, timeout=config.timeout) as context:
            self.context = context
            self.info('Starting deployment')
            with self.step('describe service'):
                describe_service_deployments(self.api, context, self.log)
            with self.step('load task definition'):
                self.info(f'Creating a new task definition by {config.task_definition_path}')
                self.task_definition = self.loader(config.task_definition_path, env_file=config.env_file)
            with self.step('register task definition'):
                self.register_task_definition()
            with self.step('update service'):
                self.update_service()
            # The update is applied now, so running out of time is a wait failure
            with self.step('wait for service stable', check_deadline=False):
                self.wait_service_stable()
            self.info('Service is stable now. Completed!')
            return self.registered

    @contextmanager
    def step(self, name: str, check_deadline: bool = True) -> Iterator[None]:
        """
        Run one step of the deployment.  A :py:exc:`DeployError` raised inside
        gets tagged with the step name and what we know about the deployment,
        then re-raised for our caller to report.
        """
        try:
            if check_deadline and self.context.expired:
                raise DeadlineExceeded(
                    'deadline passed after {:.1f}s; not starting this step'.format(self.context.elapsed())
                )
            yield
        except DeployError as e:
            if not e.step:
                e.step = name
            e.cluster = self.context.cluster
            e.service = self.context.service
            if self.registered:
                e.task_definition = self.registered.name
            raise

    def register_task_definition(self) -> None:
        self.info('Registering a new task definition...')
        response = self.api.register_task_definition(**self.task_definition.render_for_register())
        self.registered = TaskDefinition.from_registration(response)
        self.info(f'Task definition is registered {self.registered.name}')

    def update_service(self) -> None:
        self.info(f'Updating service to {self.registered.name}...')
        self.api.update_service(self.context.cluster, self.context.service, self.registered.name)
        self.info(f'Service is updated to {self.registered.name}')

    def wait_service_stable(self) -> None:
        """
        Wait for ECS to report our service stable, with a
        :py:class:`StatusReporter` logging deployment status alongside.

        However this ends, the reporter has been cancelled and has stopped by
        the time we return.

        Raises:
            DeploymentTimedOut: the deadline passed first
            ServiceFailedToStabilize: ECS says the service won't stabilize
        """
        context = self.context
        self.info('Waiting for service stable...(it will take a few minutes)')
        self.reporter = StatusReporter(self.api, context, self.log, interval=self.poll_interval)
        waiter = ServicesStableCall(self.api, context)
        self.reporter.start()
        waiter.start()
        try:
            waiter.join(context.remaining())
            timed_out = waiter.is_alive()
        finally:
            context.cancel()
            self.reporter.join()
            # Give a well behaved wait call a chance to notice the cancellation
            waiter.join(self.poll_interval)
        if not timed_out and waiter.error is not None and waiter.failed_after_deadline:
            timed_out = True
        if timed_out:
            elapsed = context.elapsed()
            raise DeploymentTimedOut(
                'timed out after {:.0f}s waiting for {} to become stable; '
                'the service update was applied, check the service in AWS'.format(elapsed, self.registered.name),
                elapsed=elapsed
            )
        if waiter.error is not None:
            if not isinstance(waiter.error, DeployError):
                raise waiter.error
            raise ServiceFailedToStabilize(
                'service did not stabilize on {}: {}'.format(self.registered.name, waiter.error),
                reason=str(waiter.error)
            ) from waiter.error
