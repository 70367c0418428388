from .abstract import Model  # noqa:F401
from .ecs import (  # noqa:F401
    Deployment,
    DeploymentStatusSnapshot,
    TaskDefinition,
)
