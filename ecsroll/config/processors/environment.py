import errno
import os
import re
from typing import Dict, Any, Optional

from .abstract import AbstractConfigProcessor


class EnvironmentConfigProcessor(AbstractConfigProcessor):
    """
    Replace environment variable references in the document text:

    * ``{{ env "NAME" "DEFAULT" }}``: the value of ``NAME``, or ``DEFAULT`` if
      ``NAME`` is not set.  With no default, an unset ``NAME`` becomes the
      empty string.
    * ``{{ must_env "NAME" }}``: the value of ``NAME``; fail if it is not set.

    Names and defaults may be written in double quotes, back quotes, or bare.
    We run before the document is parsed, so inside a JSON string use back
    quotes or bare words; outside one, a reference can supply a number::

        "image": "example/web:{{ env `IMAGE_TAG` `latest` }}",
        "memory": {{ env `MEMORY` `256` }}

    Context keys we use:

    * ``env_file``: a file of ``KEY=value`` lines to load variables from
    * ``environ``: use this dict instead of ``os.environ``.  Values here win
      over those from ``env_file``.
    """

    ENVIRONMENT_RE = re.compile(
        r'\{\{\s*(?P<func>must_env|env)\s+'
        r'(?:"(?P<dq_key>[^"]*)"|`(?P<bq_key>[^`]*)`|(?P<key>[A-Za-z0-9_.-]+))'
        r'(?:\s+(?:"(?P<dq_default>[^"]*)"|`(?P<bq_default>[^`]*)`|(?P<default>[^\s"`}]+)))?'
        r'\s*\}\}'
    )

    def __init__(self, text: str, context: Dict[str, Any]):
        super().__init__(text, context)
        self.environ: Dict[str, str] = {}
        if self.context.get('env_file'):
            self.environ.update(self._load_env_file(self.context['env_file']))
        environ = self.context.get('environ')
        self.environ.update(os.environ if environ is None else environ)

    def _load_env_file(self, filename: str) -> Dict[str, str]:
        if not os.path.exists(filename):
            raise self.ProcessingFailed('Environment file "{}" does not exist'.format(filename))
        if not os.path.isfile(filename):
            raise self.ProcessingFailed('Environment file "{}" is not a regular file'.format(filename))
        try:
            with open(filename, encoding='utf-8') as f:
                raw_lines = f.readlines()
        except IOError as e:
            if e.errno == errno.EACCES:
                raise self.ProcessingFailed('Environment file "{}" is not readable'.format(filename))
            raise
        # Strip the comments and empty lines
        lines = [x.strip() for x in raw_lines if x.strip() and not x.strip().startswith("#")]
        environment = {}
        for line in lines:
            # split on the first "="
            parts = str.split(line, '=', 1)
            if len(parts) == 2:
                environment[parts[0].strip()] = parts[1]
        return environment

    @staticmethod
    def _first(*values: Optional[str]) -> Optional[str]:
        for value in values:
            if value is not None:
                return value
        return None

    def lookup(self, m: "re.Match") -> str:
        key = self._first(m.group('dq_key'), m.group('bq_key'), m.group('key'))
        default = self._first(m.group('dq_default'), m.group('bq_default'), m.group('default'))
        if key in self.environ:
            return self.environ[key]
        if m.group('func') == 'must_env':
            raise self.ProcessingFailed(
                'Could not find value for {}: environment variable "{}" is not set'.format(m.group(0), key)
            )
        return default if default is not None else ''

    def replace(self, text: str) -> str:
        return self.ENVIRONMENT_RE.sub(self.lookup, text)
