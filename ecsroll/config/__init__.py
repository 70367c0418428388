from .config import DeployConfig  # noqa:F401
from .loader import load_document, load_task_definition  # noqa:F401
