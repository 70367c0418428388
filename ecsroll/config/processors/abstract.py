from typing import Dict, Any

from ecsroll.exceptions import (
    ConfigProcessingFailed,
    SkipConfigProcessing as BaseSkipConfigProcessing
)


class AbstractConfigProcessor:
    """
    A base class for processors for our task definition documents.  These
    processors rewrite the raw text of the document before it is parsed as
    JSON or YAML, so a substitution can supply any kind of value: a string
    inside quotes, or a bare number, boolean or list.

    Args:
        text: the undecoded task definition document
        context: a dict of additional data that we might use when processing
            the document
    """

    class SkipConfigProcessing(BaseSkipConfigProcessing):
        pass

    class ProcessingFailed(ConfigProcessingFailed):
        pass

    def __init__(self, text: str, context: Dict[str, Any]):
        #: The document text we are processing
        self.text = text
        #: Any additional context our caller wished to give us for our processing
        self.context = context

    def replace(self, text: str) -> str:
        """
        Perform our string replacements on ``text`` and return the result.
        """
        raise NotImplementedError

    def process(self) -> str:
        """
        This is the method that :py:class:`ConfigProcessor` will execute as it
        loops through known processors.

        Raises:
            AbstractConfigProcessor.ProcessingFailed: something went wrong when
                we tried to run

        Returns:
            The processed document text.
        """
        return self.replace(self.text)
