import json
import os
from typing import Any, Dict, Optional

import yaml

from ecsroll.core.models import TaskDefinition
from ecsroll.exceptions import ConfigProcessingFailed, ParseError

from .processors import ConfigProcessor


YAML_SUFFIXES = ('.yml', '.yaml')


def read_document(filename: str) -> str:
    """
    Return the undecoded text of the task definition document at ``filename``.

    Raises:
        ConfigProcessingFailed: the file does not exist or is not readable
    """
    if not os.path.exists(filename):
        raise ConfigProcessingFailed("Couldn't find task definition file '{}'".format(filename))
    if not os.access(filename, os.R_OK):
        raise ConfigProcessingFailed(
            "Task definition file '{}' exists but is not readable".format(filename)
        )
    with open(filename, encoding='utf-8') as f:
        return f.read()


def parse_document(text: str, filename: str) -> Dict[str, Any]:
    """
    Decode ``text``, the contents of ``filename``.

    Files ending in ``.yml`` or ``.yaml`` are read as YAML, everything else as
    JSON.  If the document has a top level ``taskDefinition`` key (as the
    output of ``aws ecs describe-task-definition`` does), we return what is
    under it.

    Raises:
        ParseError: ``text`` could not be decoded into a dict
    """
    try:
        if filename.endswith(YAML_SUFFIXES):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ParseError("Could not parse task definition file '{}': {}".format(filename, e)) from e
    if isinstance(data, dict) and 'taskDefinition' in data:
        data = data['taskDefinition']
    if not isinstance(data, dict):
        raise ParseError("Task definition file '{}' does not contain a task definition object".format(filename))
    return data


def load_document(filename: str) -> Dict[str, Any]:
    """
    Read a task definition document from disk and return it decoded, but with
    no substitutions done.

    Raises:
        ConfigProcessingFailed: the file does not exist or is not readable
        ParseError: the file could not be decoded into a dict
    """
    return parse_document(read_document(filename), filename)


def load_task_definition(
    filename: str,
    env_file: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None
) -> TaskDefinition:
    """
    Load the task definition document at ``filename`` and return it as an
    unregistered :py:class:`ecsroll.core.models.TaskDefinition`.

    Our variable substitutions run on the raw text, before it is parsed, so
    ``"memory": {{ env `MEMORY` `256` }}`` loads as the number 256.

    Args:
        filename: path to the task definition document

    Keyword Args:
        env_file: path to a file of ``KEY=value`` lines to use for
            substitutions, in addition to the process environment
        environ: use this instead of ``os.environ``

    Raises:
        ConfigProcessingFailed: we could not read the file, a ``must_env``
            variable was unset, or the document has no family
        ParseError: the file is not valid JSON/YAML once substitutions are done
    """
    text = ConfigProcessor(read_document(filename), {'env_file': env_file, 'environ': environ}).process()
    return TaskDefinition.new(parse_document(text, filename))
