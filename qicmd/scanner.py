#!/usr/bin/env python3
"""
Macro expansion scanner.

Finds ``$[ tag : seed => step => ... ]`` spans anywhere inside a command line
and replaces each with its evaluated text. The tag is a type name, ``?`` or
nothing (detect the type from the seed), or ``@`` (call a generator).
Everything outside the spans is passed through untouched.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from .generators import GeneratorDispatcher
from .pipeline import PipelineEvaluator
from .values import detect_type


SPAN_PATTERN = re.compile(
    r'\$\[\s*(\??\w*|@)\s*:\s*([^=\]]+?)(?:\s*=>\s*([^\]]+))?\s*\]'
)

GENERATOR_TAG = '@'
IMPLICIT_TAGS = ('', '?')


@dataclass(frozen=True)
class MacroSpan:
    """One parsed ``$[...]`` expression and its position in the line."""
    tag: str
    seed: str
    pipeline: Optional[str]
    start: int = 0
    end: int = 0

    @property
    def is_generator(self) -> bool:
        return self.tag == GENERATOR_TAG

    @property
    def is_implicit(self) -> bool:
        return self.tag in IMPLICIT_TAGS

    @classmethod
    def from_match(cls, match: 're.Match') -> 'MacroSpan':
        pipeline = match.group(3)
        return cls(
            tag=match.group(1),
            seed=match.group(2).strip(),
            pipeline=pipeline.strip() if pipeline is not None else None,
            start=match.start(),
            end=match.end(),
        )


class MacroScanner:
    """Expands every macro span in a command line in one left-to-right pass."""

    def __init__(self, evaluator: Optional[PipelineEvaluator] = None,
                 generators: Optional[GeneratorDispatcher] = None):
        self.evaluator = evaluator or PipelineEvaluator()
        self.generators = generators or GeneratorDispatcher(self.evaluator)

    def find_spans(self, command_line: str) -> List[MacroSpan]:
        """Return the spans found in a line, in order."""
        return [MacroSpan.from_match(m) for m in SPAN_PATTERN.finditer(command_line)]

    def evaluate_span(self, span: MacroSpan) -> str:
        """Compute the replacement text for a single span."""
        if span.is_generator:
            return self.generators.dispatch(span.seed, span.pipeline)

        type_name = detect_type(span.seed).value if span.is_implicit else span.tag
        return self.evaluator.evaluate(type_name, span.seed, span.pipeline)

    def expand(self, command_line: str) -> str:
        """Replace each span in the line with its evaluated text."""
        if not command_line or not command_line.strip():
            return command_line
        return SPAN_PATTERN.sub(
            lambda match: self.evaluate_span(MacroSpan.from_match(match)),
            command_line,
        )


_default_scanner: Optional[MacroScanner] = None


def expand(command_line: str) -> str:
    """Expand macro spans using a shared default scanner."""
    global _default_scanner
    if _default_scanner is None:
        _default_scanner = MacroScanner()
    return _default_scanner.expand(command_line)
