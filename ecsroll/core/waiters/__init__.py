import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from botocore import xform_name
from botocore.exceptions import WaiterError
from botocore.waiter import NormalizedOperationMethod, WaiterModel

if TYPE_CHECKING:
    from ecsroll.core.context import DeploymentContext


logger = logging.getLogger(__name__)


def get_waiter(client, waiter_name: str) -> "DeadlineWaiter":
    """
    Build a :py:class:`DeadlineWaiter` for the boto3 waiter named
    ``waiter_name`` (e.g. ``services_stable``) on ``client``.

    Raises:
        ValueError: ``client`` has no waiter named ``waiter_name``
    """
    config = client._get_waiter_config()  # pylint:disable=protected-access
    if not config:
        raise ValueError("Waiter does not exist: %s" % waiter_name)
    model = WaiterModel(config)
    mapping = {}
    for name in model.waiter_names:
        mapping[xform_name(name)] = name
    if waiter_name not in mapping:
        raise ValueError("Waiter does not exist: %s" % waiter_name)
    return create_deadline_waiter_with_client(mapping[waiter_name], model, client)


def create_deadline_waiter_with_client(waiter_name: str, waiter_model: WaiterModel, client) -> "DeadlineWaiter":
    """

    :type waiter_name: str
    :param waiter_name: The name of the waiter.  The name should match
        the name (including the casing) of the key name in the waiter
        model file (typically this is CamelCasing).

    :type waiter_model: botocore.waiter.WaiterModel
    :param waiter_model: The model for the waiter configuration.

    :type client: botocore.client.BaseClient
    :param client: The botocore client associated with the service.

    :rtype: DeadlineWaiter
    :return: The waiter object.

    """
    single_waiter_config = waiter_model.get_waiter(waiter_name)
    operation_name = xform_name(single_waiter_config.operation)
    operation_method = NormalizedOperationMethod(getattr(client, operation_name))
    return DeadlineWaiter(waiter_name, single_waiter_config, operation_method)


class DeadlineWaiter:
    """

    A DeadlineWaiter is almost exactly like a standard boto3 Waiter with one
    difference: you can give it a :py:class:`ecsroll.core.context.DeploymentContext`
    and it will stop when that context is cancelled or its deadline passes,
    instead of only after a fixed number of attempts.

    To use it, pass a kwarg named ``context`` to ``waiter.wait()``.

    When the context has a deadline and no explicit ``MaxAttempts`` was
    given in ``WaiterConfig``, the deadline is the only limit.  Otherwise
    the waiter model's ``max_attempts`` still applies.

    In-flight calls are never interrupted: cancellation is noticed between
    attempts.
    """
    def __init__(self, name, config, operation_method):
        """

        :type name: string
        :param name: The name of the waiter

        :type config: botocore.waiter.SingleWaiterConfig
        :param config: The configuration for the waiter.

        :type operation_method: callable
        :param operation_method: A callable that accepts **kwargs
            and returns a response.  For example, this can be
            a method from a botocore client.

        """
        self._operation_method = operation_method
        # The two attributes are exposed to allow for introspection
        # and documentation.
        self.name = name
        self.config = config

    def wait(self, context: Optional["DeploymentContext"] = None, **kwargs) -> None:
        acceptors = list(self.config.acceptors)
        current_state = 'waiting'
        # pop the invocation specific config
        config: Dict[str, Any] = kwargs.pop('WaiterConfig', {})
        sleep_amount = config.get('Delay', self.config.delay)
        max_attempts: Optional[int] = config.get('MaxAttempts', self.config.max_attempts)
        if context is not None and context.deadline is not None and 'MaxAttempts' not in config:
            max_attempts = None
        last_matched_acceptor = None
        response = None
        num_attempts = 0

        while True:
            if context is not None and context.is_cancelled:
                raise WaiterError(name=self.name, reason='Cancelled', last_response=response)
            response = self._operation_method(**kwargs)
            num_attempts += 1
            for acceptor in acceptors:
                if acceptor.matcher_func(response):
                    last_matched_acceptor = acceptor
                    current_state = acceptor.state
                    break
            else:
                # If none of the acceptors matched, we should
                # transition to the failure state if an error
                # response was received.
                if 'Error' in response:
                    raise WaiterError(
                        name=self.name,
                        reason='An error occurred (%s): %s' % (
                            response['Error'].get('Code', 'Unknown'),
                            response['Error'].get('Message', 'Unknown'),
                        ),
                        last_response=response,
                    )
            logger.debug('%s: attempt %d state=%s', self.name, num_attempts, current_state)
            if current_state == 'success':
                logger.debug("Waiting complete, waiter matched the "
                             "success state.")
                return
            if current_state == 'failure':
                reason = 'Waiter encountered a terminal failure state: %s' % (
                    last_matched_acceptor.explanation
                )
                raise WaiterError(
                    name=self.name,
                    reason=reason,
                    last_response=response,
                )
            if max_attempts is not None and num_attempts >= max_attempts:
                if last_matched_acceptor is None:
                    reason = 'Max attempts exceeded'
                else:
                    reason = 'Max attempts exceeded. Previously accepted state: %s' % (
                        last_matched_acceptor.explanation
                    )
                raise WaiterError(
                    name=self.name,
                    reason=reason,
                    last_response=response,
                )
            self._sleep(sleep_amount, context, response)

    def _sleep(self, sleep_amount: float, context: Optional["DeploymentContext"], response) -> None:
        if context is None:
            time.sleep(sleep_amount)
            return
        remaining = context.remaining()
        if remaining is not None:
            if remaining <= 0:
                raise WaiterError(name=self.name, reason='Deadline exceeded', last_response=response)
            sleep_amount = min(sleep_amount, remaining)
        if context.cancelled.wait(sleep_amount):
            raise WaiterError(name=self.name, reason='Cancelled', last_response=response)
