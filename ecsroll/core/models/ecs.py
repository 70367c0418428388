from copy import deepcopy
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ecsroll.exceptions import RegistrationConfirmationError

from .abstract import Model


__all__ = [
    'Deployment',
    'DeploymentStatusSnapshot',
    'TaskDefinition',
]

logger = logging.getLogger(__name__)


class TaskDefinition(Model):
    """
    An ECS Task Definition.

    Before registration this holds whatever we loaded from the task definition
    document, and has no revision.  After registration we build a brand new
    ``TaskDefinition`` from the ``register_task_definition`` response with
    :py:meth:`from_registration`; that one knows its revision and status.
    """

    #: The parameters of ``register_task_definition`` we always send, in order.
    #: The sequence values are opaque to us: only ECS looks inside them.
    REGISTER_FIELDS: List[str] = [
        'family',
        'taskRoleArn',
        'networkMode',
        'volumes',
        'placementConstraints',
        'containerDefinitions',
    ]

    #: Other ``register_task_definition`` parameters we pass through untouched
    #: when the document has them
    OPTIONAL_REGISTER_FIELDS: List[str] = [
        'executionRoleArn',
        'cpu',
        'memory',
        'requiresCompatibilities',
        'pidMode',
        'ipcMode',
        'proxyConfiguration',
        'inferenceAccelerators',
        'ephemeralStorage',
        'runtimePlatform',
        'enableFaultInjection',
        'tags',
    ]

    #: Keys AWS fills in on registration.  ``describe-task-definition`` output
    #: has them, so a document saved from it would otherwise look registered.
    AWS_ASSIGNED_FIELDS: List[str] = [
        'taskDefinitionArn',
        'revision',
        'status',
        'requiresAttributes',
        'compatibilities',
        'registeredAt',
        'registeredBy',
        'deregisteredAt',
    ]

    @classmethod
    def new(cls, data: Dict[str, Any]) -> "TaskDefinition":
        """
        Build an unregistered ``TaskDefinition`` from a task definition
        document.

        Raises:
            TaskDefinition.ImproperlyConfigured: ``data`` has no family
        """
        data = deepcopy(data)
        for key in cls.AWS_ASSIGNED_FIELDS:
            data.pop(key, None)
        if not data.get('family'):
            raise cls.ImproperlyConfigured('Task definition document has no "family"')
        return cls(data)

    @classmethod
    def from_registration(cls, response: Any) -> "TaskDefinition":
        """
        Build a registered ``TaskDefinition`` from the response to
        ``register_task_definition``.

        Args:
            response: the decoded response, which should look like
                ``{"taskDefinition": {...}}``

        Raises:
            RegistrationConfirmationError: the response does not tell us what
                family and revision were registered

        Returns:
            A new ``TaskDefinition`` with ``revision`` and ``status`` set.
        """
        if not isinstance(response, dict) or not isinstance(response.get('taskDefinition'), dict):
            raise RegistrationConfirmationError(
                'register_task_definition response has no "taskDefinition" object'
            )
        data = response['taskDefinition']
        if not data.get('family'):
            raise RegistrationConfirmationError('register_task_definition response has no family')
        revision = data.get('revision')
        if isinstance(revision, bool) or not isinstance(revision, int) or revision <= 0:
            raise RegistrationConfirmationError(
                'register_task_definition response for family "{}" has no valid revision: {!r}'.format(
                    data['family'],
                    revision
                )
            )
        return cls(deepcopy(data))

    # ---------------------
    # Model overrides
    # ---------------------

    @property
    def pk(self) -> str:
        """
        If this task definition exists in AWS, return our ``<family>:<revision>`` string.
        Else, return just the family.
        """
        if self.is_registered:
            return f'{self.family}:{self.revision}'
        return self.family

    @property
    def name(self) -> Optional[str]:
        """
        ``<family>:<revision>``, or ``None`` if we have not been registered.
        """
        if self.is_registered:
            return self.pk
        return None

    @property
    def arn(self) -> Optional[str]:
        return self.data.get('taskDefinitionArn', None)

    # ----------------------------------
    # TaskDefinition-specific properties
    # ----------------------------------

    @property
    def family(self) -> str:
        return self.data.get('family') or ''

    @property
    def taskRoleArn(self) -> Optional[str]:
        return self.data.get('taskRoleArn', None)

    @property
    def networkMode(self) -> Optional[str]:
        return self.data.get('networkMode', None)

    @property
    def containerDefinitions(self) -> List[Dict[str, Any]]:
        return self.data.get('containerDefinitions') or []

    @property
    def volumes(self) -> List[Dict[str, Any]]:
        return self.data.get('volumes') or []

    @property
    def placementConstraints(self) -> List[Dict[str, Any]]:
        return self.data.get('placementConstraints') or []

    @property
    def revision(self) -> int:
        """
        Our revision number.  0 means we have not been registered.
        """
        return self.data.get('revision') or 0

    @property
    def status(self) -> Optional[str]:
        return self.data.get('status', None)

    @property
    def is_registered(self) -> bool:
        return self.revision > 0

    # ----------------------------------
    # Rendering
    # ----------------------------------

    def render(self) -> Dict[str, Any]:
        """
        Return the core ``register_task_definition`` parameters.  Sequence
        values are deep copies of ours, in the same order.
        """
        data: Dict[str, Any] = {}
        for key in self.REGISTER_FIELDS:
            value = getattr(self, key)
            data[key] = deepcopy(value)
        return data

    def render_for_register(self) -> Dict[str, Any]:
        """
        Return the kwargs for ``ClusterAPI.register_task_definition``.

        Empty optional strings are dropped: ECS refuses an empty ``networkMode``
        or ``taskRoleArn``, and leaving them out means "use the default".

        Raises:
            TaskDefinition.ImproperlyConfigured: we have no family
        """
        if not self.family:
            raise self.ImproperlyConfigured('Task definition has no family; refusing to register it')
        data = self.render()
        for key in ('taskRoleArn', 'networkMode'):
            if not data[key]:
                del data[key]
        for key in self.OPTIONAL_REGISTER_FIELDS:
            if self.data.get(key) not in (None, '', []):
                data[key] = deepcopy(self.data[key])
        ignored = sorted(
            set(self.data) - set(self.REGISTER_FIELDS) - set(self.OPTIONAL_REGISTER_FIELDS)
            - set(self.AWS_ASSIGNED_FIELDS)
        )
        if ignored:
            logger.debug(
                'task definition %s: not sending unsupported keys to register_task_definition: %s',
                self.family,
                ', '.join(ignored)
            )
        return data


class Deployment(Model):
    """
    One entry from the ``deployments`` list of an ECS service.
    """

    @property
    def pk(self) -> str:
        return self.data.get('id', '')

    @property
    def name(self) -> str:
        return self.pk

    @property
    def arn(self) -> Optional[str]:
        return self.data.get('id', None)

    @property
    def status(self) -> str:
        return self.data.get('status', '')

    @property
    def desired_count(self) -> int:
        return self.data.get('desiredCount', 0)

    @property
    def running_count(self) -> int:
        return self.data.get('runningCount', 0)

    @property
    def pending_count(self) -> int:
        return self.data.get('pendingCount', 0)

    @property
    def rollout_state(self) -> Optional[str]:
        return self.data.get('rolloutState', None)

    @property
    def task_definition(self) -> str:
        """
        The ``family:revision`` of the task definition for this deployment.
        ECS gives us the full ARN.
        """
        return self.data.get('taskDefinition', '').rsplit('/', 1)[-1]

    def __str__(self) -> str:
        line = '{:>8} {} desired:{} pending:{} running:{}'.format(
            self.status,
            self.task_definition,
            self.desired_count,
            self.pending_count,
            self.running_count
        )
        if self.rollout_state:
            line += f' rollout:{self.rollout_state}'
        return line


class DeploymentStatusSnapshot:
    """
    What a service's deployments looked like at one moment.  We only ever log
    these.
    """

    def __init__(self, service: str, deployments: Sequence[Deployment]) -> None:
        self.service = service
        self.deployments = list(deployments)

    def lines(self) -> Iterator[str]:
        for deployment in self.deployments:
            yield str(deployment)

    def __len__(self) -> int:
        return len(self.deployments)
