import threading
from typing import TYPE_CHECKING

from ecsroll.core.models import DeploymentStatusSnapshot
from ecsroll.types import SupportsLog

if TYPE_CHECKING:
    from ecsroll.core.api import ClusterAPI
    from ecsroll.core.context import DeploymentContext


def describe_service_deployments(
    api: "ClusterAPI",
    context: "DeploymentContext",
    log: SupportsLog
) -> DeploymentStatusSnapshot:
    """
    Fetch the current deployments for our service and log one line per
    deployment.

    Raises:
        ecsroll.exceptions.PlatformCallError: ``describe_services`` failed
    """
    snapshot = DeploymentStatusSnapshot(
        context.service,
        api.describe_service_deployments(context.cluster, context.service)
    )
    for line in snapshot.lines():
        log.info(f'{context.name} {line}')
    return snapshot


class StatusReporter(threading.Thread):
    """
    While we wait for a service to stabilize, log its deployment status every
    ``interval`` seconds so the operator can see what ECS is doing.

    This is best effort: a failed poll is logged as a warning and otherwise
    ignored.  We stop as soon as ``context`` is cancelled; a poll that is
    already in flight finishes, but no new one starts.

    Args:
        api: where to get deployment status from
        context: the deployment run we're reporting on
        log: where to write status lines

    Keyword Args:
        interval: seconds between polls
    """

    def __init__(
        self,
        api: "ClusterAPI",
        context: "DeploymentContext",
        log: SupportsLog,
        interval: float = 10
    ) -> None:
        super().__init__(name=f'status-reporter:{context.name}', daemon=True)
        self.api = api
        self.context = context
        self.log = log
        self.interval = interval
        #: How many polls we actually started
        self.polls = 0

    def run(self) -> None:
        while not self.context.cancelled.wait(self.interval):
            self.polls += 1
            try:
                describe_service_deployments(self.api, self.context, self.log)
            except Exception as e:  # pylint: disable=broad-except
                self.log.warning(f'{self.context.name} could not get deployment status: {e}')
        self.log.debug(f'{self.context.name} status reporter stopped after {self.polls} polls')
