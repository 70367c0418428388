from copy import deepcopy
from typing import Any, Dict

from ecsroll.exceptions import ConfigProcessingFailed


class Model:
    """
    Base class for our models.  A model wraps a dict shaped like what boto3
    returns when we retrieve a single object of its type from AWS.
    """

    class ImproperlyConfigured(ConfigProcessingFailed):
        """
        The data we were given is not enough to build a usable object.
        """
        pass

    def __init__(self, data: Dict[str, Any]) -> None:
        self.data = data

    @property
    def pk(self) -> str:
        raise NotImplementedError

    @property
    def name(self):
        raise NotImplementedError

    @property
    def arn(self):
        raise NotImplementedError

    def render(self) -> Dict[str, Any]:
        return deepcopy(self.data)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(pk="{self.pk}")'
