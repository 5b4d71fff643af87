"""
QiCmd - A command shell with an embedded macro pipeline language

Spans such as ``$[Date: 2024-01-01 15:06:32 => Time]`` inside a command line
are typed, converted through a chain of named converters and replaced by
their result before the line reaches the system shell. The package also
provides user-defined macro functions and an infix arithmetic evaluator.
"""

__version__ = "0.3.0"

from .values import (
    ValueType,
    TypedValue,
    detect_type,
)

from .durations import (
    parse_duration_seconds,
    format_duration_seconds,
)

from .converters import (
    Conversion,
    Converter,
    ConverterRegistry,
    REGISTRY,
)

from .pipeline import (
    PipelineEvaluator,
    PipelineResult,
)

from .generators import GeneratorDispatcher

from .scanner import (
    MacroScanner,
    MacroSpan,
    expand,
)

from .functions import (
    FunctionDefinition,
    FunctionTable,
    DefinitionError,
    LineAccumulator,
)

from .calculator import (
    calculate,
    CalculatorError,
    ExpressionSyntaxError,
    ExpressionDomainError,
    DivisionByZeroError,
)

from .terminal import (
    TerminalSession,
    TerminalConfig,
    CommandExecutor,
    CommandResult,
    CallDepthExceeded,
    SubprocessRunner,
)

__all__ = [
    # Values and types
    "ValueType",
    "TypedValue",
    "detect_type",
    "parse_duration_seconds",
    "format_duration_seconds",

    # Converters and pipelines
    "Conversion",
    "Converter",
    "ConverterRegistry",
    "REGISTRY",
    "PipelineEvaluator",
    "PipelineResult",
    "GeneratorDispatcher",

    # Macro expansion
    "MacroScanner",
    "MacroSpan",
    "expand",

    # Functions
    "FunctionDefinition",
    "FunctionTable",
    "DefinitionError",
    "LineAccumulator",

    # Calculator
    "calculate",
    "CalculatorError",
    "ExpressionSyntaxError",
    "ExpressionDomainError",
    "DivisionByZeroError",

    # Terminal
    "TerminalSession",
    "TerminalConfig",
    "CommandExecutor",
    "CommandResult",
    "CallDepthExceeded",
    "SubprocessRunner",

    # Version info
    "__version__",
]
