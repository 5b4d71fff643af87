#!/usr/bin/env python3
"""
Generator functions for the ``@`` macro sigil.

A generator span looks like ``$[@: name(arg1, arg2) => Step => ...]``. The
call produces a fresh value; when a pipeline follows, the value's type is
detected and the pipeline applied to it.
"""

import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .pipeline import PipelineEvaluator
from .values import detect_type


logger = logging.getLogger(__name__)

CALL_PATTERN = re.compile(r'(\w+)\(([^)]*)\)')

IFEO_KEY = r'HKLM\SOFTWARE\Microsoft\Windows NT\CurrentVersion\Image File Execution Options'


def _now() -> datetime:
    return datetime.now()


def unknown_function(name: str) -> str:
    return f"[Error: Unknown function '{name}']"


def gettime(args: List[str]) -> Optional[str]:
    """Current clock time as a duration literal, e.g. gettime(Now) -> 15h6m32s."""
    if len(args) == 1 and args[0].lower() == 'now':
        now = _now()
        return f"{now.hour}h{now.minute}m{now.second}s"
    return None


def getdate(args: List[str]) -> Optional[str]:
    """Current date and time, e.g. getdate(Now) -> 2024/1/5 9:3:7."""
    if len(args) == 1 and args[0].lower() == 'now':
        now = _now()
        return f"{now.year}/{now.month}/{now.day} {now.hour}:{now.minute}:{now.second}"
    return None


def ifeo(args: List[str]) -> Optional[str]:
    """Registry command attaching a debugger to an executable image."""
    if len(args) == 2:
        image, debugger = args
        return f'reg add "{IFEO_KEY}\\{image}" /v Debugger /t REG_SZ /d "{debugger}" /f'
    return None


GENERATORS: Dict[str, Callable[[List[str]], Optional[str]]] = {
    'gettime': gettime,
    'getdate': getdate,
    'ifeo': ifeo,
}


class GeneratorDispatcher:
    """Evaluates generator calls and feeds their output into a pipeline."""

    def __init__(self, evaluator: Optional[PipelineEvaluator] = None):
        self.evaluator = evaluator or PipelineEvaluator()

    def generate(self, name: str, args: List[str]) -> str:
        """
        Run a generator by name (case-insensitive).

        Unknown names and unsupported arguments yield an error marker string.
        """
        generator = GENERATORS.get(name.lower())
        value = generator(args) if generator else None
        if value is None:
            logger.debug("generator %s(%s) not available", name, ', '.join(args))
            return unknown_function(name)
        return value

    def dispatch(self, call: str, pipeline: Optional[str] = None) -> str:
        """Evaluate ``name(args)`` and apply an optional pipeline to the result."""
        match = CALL_PATTERN.search(call)
        if not match:
            return call

        name = match.group(1)
        args = [arg.strip() for arg in match.group(2).split(',')]
        value = self.generate(name, args)

        if pipeline and pipeline.strip():
            return self.evaluator.evaluate(detect_type(value).value, value, pipeline)
        return value
