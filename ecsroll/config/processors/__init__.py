from typing import Any, Dict, List, Type

from ecsroll.exceptions import ConfigProcessingFailed, SkipConfigProcessing

from .abstract import AbstractConfigProcessor
from .environment import EnvironmentConfigProcessor


class ConfigProcessor:
    """
    Run each registered processor over the text of a task definition document,
    in the order they were registered, each one working on the output of the
    one before.
    """

    class ProcessingFailed(ConfigProcessingFailed):
        pass

    processor_classes: List[Type[AbstractConfigProcessor]] = []

    @classmethod
    def register(cls, processor_class: Type[AbstractConfigProcessor]) -> None:
        cls.processor_classes.append(processor_class)

    def __init__(self, text: str, context: Dict[str, Any]):
        self.text = text
        self.context = context

    def process(self) -> str:
        text = self.text
        for processor_class in self.processor_classes:
            try:
                current_processor = processor_class(text, self.context)
            except SkipConfigProcessing:
                continue
            except ConfigProcessingFailed as e:
                raise self.ProcessingFailed(e.msg)
            try:
                text = current_processor.process()
            except ConfigProcessingFailed as e:
                raise self.ProcessingFailed(e.msg)
        return text


ConfigProcessor.register(EnvironmentConfigProcessor)
