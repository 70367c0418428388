import os

from cement import Controller
from cement.utils.version import get_version_banner
import click

from ecsroll import get_version
from ecsroll.config import DeployConfig
from ecsroll.core.api import Boto3ClusterAPI
from ecsroll.core.aws import build_boto3_session
from ecsroll.core.orchestrator import DeploymentOrchestrator
from ecsroll.exceptions import ConfigProcessingFailed

from .utils import handle_deploy_exceptions


VERSION_BANNER = """
ecsroll-%s: Deploy a new task definition to an AWS ECS service
---
%s
""" % (get_version(), get_version_banner())


class Base(Controller):
    class Meta:
        label = 'base'

        # text displayed at the top of --help output
        description = (
            'ecsroll: register a new task definition, point an ECS service at it, '
            'and wait for the service to become stable'
        )

        arguments = [
            ### add a version banner
            (['-v', '--version'], {'action': 'version', 'version': VERSION_BANNER}),
            (
                ['--cluster'],
                {
                    'dest': 'cluster',
                    'action': 'store',
                    'required': True,
                    'help': 'Name of the ECS cluster'
                }
            ),
            (
                ['--service'],
                {
                    'dest': 'service',
                    'action': 'store',
                    'required': True,
                    'help': 'Name of the ECS service to deploy to'
                }
            ),
            (
                ['--task-definition'],
                {
                    'dest': 'task_definition',
                    'action': 'store',
                    'required': True,
                    'help': 'Path to the task definition document (JSON or YAML)'
                }
            ),
            (
                ['--timeout'],
                {
                    'dest': 'timeout',
                    'action': 'store',
                    'type': int,
                    'default': None,
                    'help': 'Seconds to allow for the whole deployment; 0 disables the limit (default: 300)'
                }
            ),
            (
                ['-e', '--env-file'],
                {
                    'dest': 'env_file',
                    'action': 'store',
                    'default': None,
                    'help': 'Path to an environment file to use for {{ env "VAR" }} replacements'
                }
            ),
            (
                ['--profile'],
                {
                    'dest': 'profile',
                    'action': 'store',
                    'default': None,
                    'help': 'AWS profile from ~/.aws/config to use'
                }
            ),
            (
                ['--region'],
                {
                    'dest': 'region',
                    'action': 'store',
                    'default': None,
                    'help': 'AWS region to use'
                }
            ),
        ]

    def get_timeout(self) -> int:
        """
        The command line wins, then the ``ECSROLL_TIMEOUT`` environment variable,
        then the ``timeout`` setting in our config file.
        """
        if self.app.pargs.timeout is not None:
            return self.app.pargs.timeout
        if 'ECSROLL_TIMEOUT' in os.environ:
            try:
                return int(os.environ['ECSROLL_TIMEOUT'])
            except ValueError:
                raise ConfigProcessingFailed(
                    'ECSROLL_TIMEOUT must be a whole number of seconds, not "{}"'.format(
                        os.environ['ECSROLL_TIMEOUT']
                    )
                )
        return int(self.app.config.get('ecsroll', 'timeout'))

    @handle_deploy_exceptions
    def _default(self):
        """Deploy the task definition to the service."""
        config = DeployConfig(
            cluster=self.app.pargs.cluster,
            service=self.app.pargs.service,
            task_definition_path=self.app.pargs.task_definition,
            timeout=self.get_timeout(),
            env_file=self.app.pargs.env_file
        )
        self.app.log.debug(f'building boto3 session for {config}')
        build_boto3_session(profile=self.app.pargs.profile, region=self.app.pargs.region)
        orchestrator = DeploymentOrchestrator(
            Boto3ClusterAPI(),
            self.app.log,
            poll_interval=float(self.app.config.get('ecsroll', 'poll_interval'))
        )
        registered = orchestrator.run(config)
        self.app.print(click.style(
            f'Deployed {registered.name} to {config.service}/{config.cluster}.',
            fg='green'
        ))
