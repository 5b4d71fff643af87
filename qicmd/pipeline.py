#!/usr/bin/env python3
"""
Pipeline evaluation for the qicmd macro language.

A pipeline is an arrow-separated chain of conversion steps applied to a seed
value, e.g. ``Date => Time => Time.Min``. Each step names either a type (its
default converter) or a ``Type.Op`` converter. Evaluation is best-effort: the
first step that cannot be applied ends the chain and the value reached so far
is the result.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .converters import REGISTRY, Conversion, ConverterRegistry
from .values import TypedValue, ValueType, canonical_type_name


logger = logging.getLogger(__name__)

ARROW = '=>'


def split_steps(pipeline: Optional[str]) -> List[str]:
    """Split a pipeline string into trimmed, non-empty steps."""
    if not pipeline:
        return []
    return [step.strip() for step in pipeline.split(ARROW) if step.strip()]


@dataclass(frozen=True)
class PipelineResult:
    """
    Final value of a pipeline run.

    completed is False when a step was not recognised or its converter failed
    or raised; stopped_at names that step.
    """
    value: TypedValue
    completed: bool = True
    stopped_at: Optional[str] = None

    @property
    def text(self) -> str:
        return self.value.text


class PipelineEvaluator:
    """Applies conversion steps to typed values using a converter registry."""

    def __init__(self, registry: Optional[ConverterRegistry] = None):
        self.registry = registry or REGISTRY

    def evaluate(self, type_name: str, value: str,
                 pipeline: Optional[str] = None) -> str:
        """Evaluate a pipeline and return the resulting text."""
        return self.run(type_name, value, pipeline).text

    def run(self, type_name: str, value: str,
            pipeline: Optional[str] = None) -> PipelineResult:
        """
        Evaluate a pipeline, keeping the type of the final value.

        With a blank pipeline the seed type's default converter is applied if
        one is registered. A converter that raises is treated like an unknown
        step.
        """
        current = TypedValue(canonical_type_name(type_name), value)
        logger.debug("pipeline start %s:%s => %s", current.type_name, current.text, pipeline)

        if pipeline is None or not pipeline.strip():
            conversion = self._convert(current.type_name, current.text)
            if conversion is not None and conversion.ok:
                current = TypedValue(current.type_name, conversion.value)
            return PipelineResult(current)

        steps = split_steps(pipeline)
        if not steps:
            return PipelineResult(current)

        for step in steps:
            logger.debug("step %r, current %s:%s", step, current.type_name, current.text)
            key, next_type = self._resolve(current, step)

            if key is None:
                logger.debug("no converter for step %r, stopping", step)
                return PipelineResult(current, completed=False, stopped_at=step)

            conversion = self._convert(key, current.text)
            if conversion is None:
                return PipelineResult(current, completed=False, stopped_at=step)
            if not conversion.ok:
                logger.debug("converter %s failed: %s", key, conversion.error)
                return PipelineResult(current, completed=False, stopped_at=step)

            current = TypedValue(next_type, conversion.value)
            logger.debug("converted to %s:%s", current.type_name, current.text)

        return PipelineResult(current)

    def _convert(self, key: str, text: str) -> Optional[Conversion]:
        try:
            return self.registry.convert(key, text)
        except (ArithmeticError, ValueError) as e:
            logger.debug("converter %s raised %s: %s", key, type(e).__name__, e)
            return None

    def _resolve(self, current: TypedValue, step: str):
        """Pick the converter key for a step and the type it leaves behind."""
        # A bare Time step after a Date extracts the time of day.
        if current.type is ValueType.DATE and step == 'Time':
            return 'Date.Time', ValueType.TIME.value

        if '.' in step and step in self.registry:
            return step, canonical_type_name(step.split('.', 1)[0])

        if step in self.registry:
            return step, canonical_type_name(step)

        return None, None
