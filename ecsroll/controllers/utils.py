from collections.abc import Callable
from functools import wraps

import click

from ecsroll.core.aws import AWSSessionBuilder
from ecsroll.exceptions import DeployError

# ========================
# Decorators
# ========================

def handle_deploy_exceptions(func: Callable) -> Callable:
    """
    This decorator catches all the kinds of exceptions we expect to see in normal
    operation, prints them as a single red line on stderr and sets our exit code
    to 1, while letting others display their stack traces normally.

    We use this decorator to wrap cement command methods on
    :py:class:`cement.ext.ext_argparse.ArgparseController` subclasses.
    """

    @wraps(func)
    def inner(self, *args, **kwargs):
        try:
            obj = func(self, *args, **kwargs)
        except (DeployError, AWSSessionBuilder.NoSuchAWSProfile) as e:
            click.secho(str(e), fg="red", err=True)
            self.app.exit_code = 1
        else:
            return obj
    return inner
