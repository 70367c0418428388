from typing import TYPE_CHECKING, Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from ecsroll.core.aws import get_boto3_session
from ecsroll.core.models import Deployment
from ecsroll.core.waiters import get_waiter
from ecsroll.exceptions import PlatformCallError

if TYPE_CHECKING:
    from ecsroll.core.context import DeploymentContext


class ClusterAPI:
    """
    The four things we need ECS to do for us during a deployment.  Every
    method either succeeds or raises
    :py:exc:`ecsroll.exceptions.PlatformCallError`.
    """

    def describe_service_deployments(self, cluster: str, service: str) -> List[Deployment]:
        """
        Return the current deployments of service ``service`` in cluster
        ``cluster``.
        """
        raise NotImplementedError

    def register_task_definition(
        self,
        family: str,
        taskRoleArn: Optional[str] = None,
        networkMode: Optional[str] = None,
        volumes: Optional[List[Dict[str, Any]]] = None,
        placementConstraints: Optional[List[Dict[str, Any]]] = None,
        containerDefinitions: Optional[List[Dict[str, Any]]] = None,
        **extra: Any
    ) -> Dict[str, Any]:
        """
        Register a new revision of task definition family ``family``.

        Returns:
            The undecoded response, which should look like
            ``{"taskDefinition": {...}}``.  Parsing it is the caller's job, so
            that a response we can't understand is distinguishable from a
            registration that never happened.
        """
        raise NotImplementedError

    def update_service(self, cluster: str, service: str, task_definition: str) -> None:
        """
        Point service ``service`` at ``task_definition``, a
        ``family:revision`` string.
        """
        raise NotImplementedError

    def wait_services_stable(self, cluster: str, service: str, context: "DeploymentContext") -> None:
        """
        Block until ECS says the service is stable.  Implementations should
        give up when ``context`` is cancelled or its deadline passes.
        """
        raise NotImplementedError


class Boto3ClusterAPI(ClusterAPI):
    """
    :py:class:`ClusterAPI` on top of a boto3 ``ecs`` client.

    We build the client once, up front: boto3 clients are safe to share
    between threads, but building them from a shared session is not.

    Keyword Args:
        boto3_session: use this session instead of the one from
            :py:func:`ecsroll.core.aws.get_boto3_session`
        wait_delay: seconds between ``describe_services`` calls while waiting
            for the service to stabilize
    """

    service: str = 'ecs'

    def __init__(self, boto3_session: boto3.session.Session = None, wait_delay: int = 15) -> None:
        self.wait_delay = wait_delay
        try:
            self.client = get_boto3_session(boto3_session).client(self.service)
        except BotoCoreError as e:
            raise PlatformCallError('create ecs client', str(e)) from e

    def describe_service_deployments(self, cluster: str, service: str) -> List[Deployment]:
        try:
            response = self.client.describe_services(cluster=cluster, services=[service])
        except (BotoCoreError, ClientError) as e:
            raise PlatformCallError('describe_services', str(e)) from e
        services = response.get('services', [])
        if not services:
            reasons = ', '.join(
                '{}: {}'.format(f.get('arn', service), f.get('reason', 'unknown'))
                for f in response.get('failures', [])
            )
            raise PlatformCallError(
                'describe_services',
                'No service named "{}" in cluster "{}" ({})'.format(service, cluster, reasons or 'not found')
            )
        return [Deployment(d) for d in services[0].get('deployments', [])]

    def register_task_definition(
        self,
        family: str,
        taskRoleArn: Optional[str] = None,
        networkMode: Optional[str] = None,
        volumes: Optional[List[Dict[str, Any]]] = None,
        placementConstraints: Optional[List[Dict[str, Any]]] = None,
        containerDefinitions: Optional[List[Dict[str, Any]]] = None,
        **extra: Any
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            'family': family,
            'containerDefinitions': containerDefinitions or [],
        }
        if taskRoleArn:
            kwargs['taskRoleArn'] = taskRoleArn
        if networkMode:
            kwargs['networkMode'] = networkMode
        if volumes is not None:
            kwargs['volumes'] = volumes
        if placementConstraints is not None:
            kwargs['placementConstraints'] = placementConstraints
        kwargs.update(extra)
        try:
            return self.client.register_task_definition(**kwargs)
        except (BotoCoreError, ClientError) as e:
            raise PlatformCallError('register_task_definition', str(e)) from e

    def update_service(self, cluster: str, service: str, task_definition: str) -> None:
        try:
            self.client.update_service(cluster=cluster, service=service, taskDefinition=task_definition)
        except (BotoCoreError, ClientError) as e:
            raise PlatformCallError('update_service', str(e)) from e

    def wait_services_stable(self, cluster: str, service: str, context: "DeploymentContext") -> None:
        waiter = get_waiter(self.client, 'services_stable')
        try:
            waiter.wait(
                context=context,
                cluster=cluster,
                services=[service],
                WaiterConfig={'Delay': self.wait_delay}
            )
        except WaiterError as e:
            raise PlatformCallError('wait services_stable', e.kwargs.get('reason', str(e))) from e
        except (BotoCoreError, ClientError) as e:
            raise PlatformCallError('wait services_stable', str(e)) from e
