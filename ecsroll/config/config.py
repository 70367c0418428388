from typing import Optional
try:
    from typing import Final
except ImportError:
    from typing_extensions import Final  # type: ignore

from ecsroll.exceptions import ConfigProcessingFailed


class DeployConfig:
    """
    The settings for one deployment run.

    Args:
        cluster: the name of the ECS cluster our service lives in
        service: the name of the ECS service to deploy to
        task_definition_path: path to the task definition document

    Keyword Args:
        timeout: seconds the whole run may take.  ``0`` means no limit.
        env_file: optional file of ``KEY=value`` lines to use for
            ``{{ env ... }}`` substitutions in the task definition document

    Raises:
        ConfigProcessingFailed: a required setting is missing or ``timeout``
            is negative
    """

    #: Seconds we give a deployment unless told otherwise
    DEFAULT_TIMEOUT: Final[int] = 300

    def __init__(
        self,
        cluster: str,
        service: str,
        task_definition_path: str,
        timeout: float = DEFAULT_TIMEOUT,
        env_file: Optional[str] = None
    ) -> None:
        for name, value in (
            ('cluster', cluster),
            ('service', service),
            ('task definition path', task_definition_path)
        ):
            if not value:
                raise ConfigProcessingFailed(f'A {name} is required')
        if timeout is None or timeout < 0:
            raise ConfigProcessingFailed(f'timeout must be 0 or more seconds, not {timeout}')
        self.cluster = cluster
        self.service = service
        self.task_definition_path = task_definition_path
        self.timeout = timeout
        self.env_file = env_file

    def __repr__(self) -> str:
        return 'DeployConfig(cluster="{}", service="{}", task_definition_path="{}", timeout={})'.format(
            self.cluster,
            self.service,
            self.task_definition_path,
            self.timeout
        )
