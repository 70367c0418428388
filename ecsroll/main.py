from cement import App, TestApp, init_defaults
from cement.core.exc import CaughtSignal

from .config import DeployConfig
from .controllers import Base

# configuration defaults
CONFIG = init_defaults('ecsroll')
CONFIG['ecsroll']['timeout'] = DeployConfig.DEFAULT_TIMEOUT
CONFIG['ecsroll']['poll_interval'] = 10
META = init_defaults('log.colorlog')
META['log.colorlog']['log_level_argument'] = ['-l', '--level']


# ------------------
# The cement app
# ------------------

class EcsrollApp(App):
    """ecsroll primary application."""

    class Meta:
        label = 'ecsroll'

        config_defaults = CONFIG
        meta_defaults = META

        # call sys.exit() on close
        exit_on_close = True

        # load additional framework extensions
        extensions = [
            'yaml',
            'colorlog',
            'print',
        ]

        # configuration handler
        config_handler = 'yaml'

        # configuration file suffix
        config_file_suffix = '.yml'

        # handlers
        log_handler = 'colorlog'

        # register handlers
        handlers = [
            Base,
        ]


class EcsrollAppTest(TestApp, EcsrollApp):
    """A specialized version of EcsrollApp used for testing."""

    class Meta:
        label = 'ecsroll'


# ==========================================
# entrypoint
# ==========================================


def main():
    with EcsrollApp() as app:
        try:
            app.run()

        except AssertionError as e:
            print('AssertionError > %s' % e.args[0])
            app.exit_code = 1

            if app.debug is True:
                import traceback
                traceback.print_exc()

        except CaughtSignal as e:
            # SIGINT and SIGTERM mean the deployment did not finish
            print('\n%s' % e)
            app.exit_code = 1


if __name__ == '__main__':
    main()
