#!/usr/bin/env python3
"""
Terminal session for qicmd.

This module ties the macro language to a command shell. Each input line is
checked against the user's functions, expanded through the macro scanner and
then either handled by a built-in command or passed to the system shell.

Design Principles:
- Clean separation between parsing, expansion and execution
- Session-scoped state (working directory, function table)
- The external shell is an injectable collaborator
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .calculator import CalculatorError, calculate
from .command_parser import Command, CommandParser
from .functions import (
    DefinitionError, FunctionDefinition, FunctionTable, LineAccumulator,
    is_definition,
)
from .scanner import MacroScanner
from .values import format_number


logger = logging.getLogger(__name__)

CLEAR_SCREEN = '\033[2J\033[H'


@dataclass
class TerminalConfig:
    """Configuration for a terminal session."""
    initial_dir: str = field(default_factory=os.getcwd)
    prompt_format: str = '{cwd}>'
    continuation_prompt: str = '... '
    enable_colors: bool = True
    max_call_depth: Optional[int] = 64  # None disables the macro depth guard
    interactive_commands: Tuple[str, ...] = ('cmd', 'powershell', 'bash', 'ssh', 'telnet')
    shell_executable: Optional[str] = None
    debug: bool = False


@dataclass
class CommandResult:
    """Text output and exit status of one command."""
    text: str = ''
    exit_code: int = 0

    def __str__(self) -> str:
        return self.text


class CallDepthExceeded(RuntimeError):
    """Raised when nested function calls go deeper than the configured limit."""

    def __init__(self, name: str, limit: int):
        super().__init__(
            f"maximum macro call depth ({limit}) exceeded while invoking '{name}'"
        )
        self.name = name
        self.limit = limit


class SubprocessRunner:
    """
    Runs command lines through the system shell.

    Output is captured and returned as text; stderr lines are prefixed with
    'ERROR: '. Commands whose first word is an interactive program run
    attached to the terminal instead.
    """

    def __init__(self, interactive_commands: Tuple[str, ...] = (),
                 shell_executable: Optional[str] = None):
        self.interactive_commands = tuple(c.lower() for c in interactive_commands)
        self.shell_executable = shell_executable

    def is_interactive(self, command_line: str) -> bool:
        words = command_line.split()
        return bool(words) and words[0].lower() in self.interactive_commands

    def run(self, command_line: str, cwd: str) -> CommandResult:
        try:
            if self.is_interactive(command_line):
                completed = subprocess.run(
                    command_line, shell=True, cwd=cwd,
                    executable=self.shell_executable,
                )
                return CommandResult(text='', exit_code=completed.returncode)

            completed = subprocess.run(
                command_line, shell=True, cwd=cwd,
                capture_output=True, text=True,
                executable=self.shell_executable,
            )
        except OSError as e:
            logger.warning("failed to run %r: %s", command_line, e)
            return CommandResult(text=f"{command_line.split()[0]}: {e}", exit_code=1)

        lines = [line for line in completed.stdout.splitlines() if line]
        lines.extend(f"ERROR: {line}" for line in completed.stderr.splitlines() if line)
        return CommandResult(text='\n'.join(lines), exit_code=completed.returncode)


class CommandExecutor:
    """
    Executes built-in commands and hands everything else to the runner.

    Built-ins are looked up case-insensitively by the first word of the line.
    """

    def __init__(self, session: 'TerminalSession'):
        self.session = session
        self.builtins: Dict[str, Callable[[Command], CommandResult]] = {
            'cd': self._cd,
            'chdir': self._cd,
            'pwd': self._pwd,
            'cls': self._cls,
            'clear': self._cls,
            'echo': self._echo,
            'def': self._def,
            'listfuncs': self._listfuncs,
            'delfunc': self._delfunc,
            'calc': self._calc,
            'help': self._help,
        }

    def execute(self, command: Command) -> CommandResult:
        """Run a parsed command and return its result."""
        if not command.name:
            return CommandResult()

        handler = self.builtins.get(command.keyword)
        if handler is None:
            logger.debug("external command: %s", command.raw)
            return self.session.runner.run(command.raw.strip(), self.session.cwd)

        logger.debug("built-in command: %s", command.keyword)
        try:
            return handler(command)
        except (OSError, ValueError) as e:
            return CommandResult(text=f"{command.name}: {e}", exit_code=1)

    def define(self, source: str) -> CommandResult:
        """Store a function definition, reporting malformed input as text."""
        try:
            function = self.session.functions.define_from_source(source)
        except DefinitionError as e:
            return CommandResult(text=f"Error: {e}", exit_code=1)
        return CommandResult(text=f"Function '{function.name}' defined")

    def _cd(self, command: Command) -> CommandResult:
        """Change the working directory.

        Usage:
            cd [PATH]
        """
        if not command.argument_text:
            return CommandResult(text=self.session.cwd)

        target = command.argument_text
        new_path = os.path.abspath(os.path.join(self.session.cwd, target))
        if not os.path.isdir(new_path):
            return CommandResult(
                text=f"The system cannot find the path specified: {target}",
                exit_code=1,
            )
        self.session.cwd = new_path
        return CommandResult(text=f"Current directory changed to: {new_path}")

    def _pwd(self, command: Command) -> CommandResult:
        """Print the working directory."""
        return CommandResult(text=self.session.cwd)

    def _cls(self, command: Command) -> CommandResult:
        """Clear the terminal screen."""
        return CommandResult(text=CLEAR_SCREEN)

    def _echo(self, command: Command) -> CommandResult:
        """Print the arguments separated by single spaces."""
        return CommandResult(text=' '.join(command.args))

    def _def(self, command: Command) -> CommandResult:
        """Define a function: def NAME => COMMAND or def NAME => [ CMD ; CMD ]."""
        return self.define(command.raw)

    def _listfuncs(self, command: Command) -> CommandResult:
        """List the defined functions."""
        return CommandResult(text=self.session.functions.format_listing())

    def _delfunc(self, command: Command) -> CommandResult:
        """Delete a function.

        Usage:
            delfunc NAME
        """
        if not command.args:
            return CommandResult(text="Usage: delfunc <name>", exit_code=1)
        name = command.args[0]
        if self.session.functions.delete(name):
            return CommandResult(text=f"Function '{name}' deleted")
        return CommandResult(text=f"Function '{name}' does not exist", exit_code=1)

    def _calc(self, command: Command) -> CommandResult:
        """Evaluate an arithmetic expression with + - * / ^ and parentheses."""
        try:
            value = calculate(command.argument_text)
        except CalculatorError as e:
            return CommandResult(text=f"calc: {e}", exit_code=1)
        return CommandResult(text=format_number(value))

    def _help(self, command: Command) -> CommandResult:
        """Show the built-in commands."""
        lines = ["Built-in commands:"]
        for name, handler in sorted(self.builtins.items()):
            doc = (handler.__doc__ or '').strip().split('\n')[0]
            lines.append(f"  {name:<12} {doc}")
        lines.append("")
        lines.append("Macro expressions: $[Type: value => Step => ...]")
        lines.append("Anything else is passed to the system shell.")
        return CommandResult(text='\n'.join(lines))


class TerminalSession:
    """
    Main terminal session.

    Owns the working directory and the function table, and dispatches each
    input line.
    """

    def __init__(self, config: Optional[TerminalConfig] = None,
                 runner: Optional[SubprocessRunner] = None,
                 scanner: Optional[MacroScanner] = None):
        self.config = config or TerminalConfig()
        self.runner = runner or SubprocessRunner(
            self.config.interactive_commands, self.config.shell_executable
        )
        self.scanner = scanner or MacroScanner()
        self.parser = CommandParser()
        self.functions = FunctionTable()
        self.executor = CommandExecutor(self)
        self.cwd = os.path.abspath(self.config.initial_dir)
        self.last_exit_code = 0
        self.running = False

        if self.config.debug:
            logging.getLogger('qicmd').setLevel(logging.DEBUG)

    def get_prompt(self) -> str:
        """Generate the command prompt."""
        prompt = self.config.prompt_format.format(cwd=self.cwd)
        if self.config.enable_colors:
            prompt = f'\033[32m{prompt}\033[0m'
        return prompt

    def execute_command(self, command_line: str, depth: int = 0) -> Optional[str]:
        """
        Execute a command line and return its output.

        Returns None for exit commands. depth is the function nesting level
        of the line; top-level callers leave it at 0.
        """
        if depth == 0:
            try:
                return self._dispatch(command_line, 0)
            except (CallDepthExceeded, RecursionError) as e:
                self.last_exit_code = 1
                return f"Error: {e}"
            except Exception as e:
                logger.debug("command %r failed", command_line, exc_info=True)
                self.last_exit_code = 1
                return f"Error: {e}"
        return self._dispatch(command_line, depth)

    def _dispatch(self, command_line: str, depth: int) -> Optional[str]:
        if not command_line or not command_line.strip():
            return ''

        line = command_line.strip()

        if depth == 0 and line.lower() in ('exit', 'quit'):
            return None

        function = self.functions.get(line)
        if function is not None:
            return self._invoke(function, depth)

        # Bodies stay unexpanded so spans are evaluated on every invocation.
        if is_definition(line):
            result = self.executor.define(line)
        else:
            expanded = self.scanner.expand(line)
            result = self.executor.execute(self.parser.parse(expanded))

        self.last_exit_code = result.exit_code
        return result.text

    def _invoke(self, function: FunctionDefinition, depth: int) -> str:
        """Run each command of a function through the normal dispatch path."""
        next_depth = depth + 1
        limit = self.config.max_call_depth
        if limit is not None and next_depth > limit:
            raise CallDepthExceeded(function.name, limit)

        logger.debug("invoking function %s at depth %d", function.name, next_depth)
        outputs = []
        for command in function.commands:
            output = self._dispatch(command, next_depth)
            if output:
                outputs.append(output)
        return '\n'.join(outputs)

    def run_command(self, command_line: str) -> str:
        """
        Run a single command and return output.

        This method is useful for non-interactive use.
        """
        output = self.execute_command(command_line)
        return output if output is not None else ''

    def run_script(self, script_lines: List[str]) -> List[str]:
        """
        Run a script and return the non-empty outputs.

        Bracketed function definitions may span several lines.
        """
        outputs = []
        accumulator = LineAccumulator()
        for raw_line in script_lines:
            line = accumulator.feed(raw_line)
            if line is None or not line:
                continue

            output = self.execute_command(line)
            if output is None:
                return outputs
            if output:
                outputs.append(output)

        try:
            accumulator.finish()
        except DefinitionError as e:
            outputs.append(f"Error: {e}")
        return outputs

    def run_file(self, path: str) -> List[str]:
        """Run a script file."""
        with open(path, encoding='utf-8') as f:
            return self.run_script(f.read().splitlines())

    def run_interactive(self):
        """Run the interactive REPL loop."""
        self.running = True
        accumulator = LineAccumulator()

        print("QiCmd - type 'help' for built-in commands, 'exit' to quit")

        while self.running:
            try:
                prompt = self.config.continuation_prompt if accumulator.pending else self.get_prompt()
                line = accumulator.feed(input(prompt))
                if line is None:
                    continue

                output = self.execute_command(line)
                if output is None:
                    break
                if output:
                    print(output)

            except KeyboardInterrupt:
                print("^C")
                accumulator = LineAccumulator()
                continue
            except EOFError:
                print()
                break
            except Exception as e:
                print(f"Error: {e}")

        self.running = False


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the qicmd shell."""
    import argparse

    parser = argparse.ArgumentParser(description='QiCmd - command shell with a macro pipeline language')
    parser.add_argument('files', nargs='*', help='Script files to run')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('--max-depth', type=int, default=64,
                        help='Maximum nested function calls (0 disables the limit)')
    parser.add_argument('--no-color', action='store_true', help='Disable prompt colors')
    parser.add_argument('--debug', action='store_true', help='Log pipeline evaluation steps')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    config = TerminalConfig(
        enable_colors=not args.no_color,
        max_call_depth=args.max_depth or None,
        debug=args.debug,
    )
    session = TerminalSession(config=config)

    if args.files:
        for path in args.files:
            if not os.path.isfile(path):
                print(f"File not found: {path}")
                continue
            try:
                for output in session.run_file(path):
                    print(output)
            except (OSError, UnicodeDecodeError) as e:
                print(f"Error processing file: {e}")
        return session.last_exit_code

    if args.command:
        output = session.run_command(args.command)
        if output:
            print(output)
        return session.last_exit_code

    # Line editing and history for input()
    try:
        import readline  # noqa: F401
    except ImportError:
        pass

    session.run_interactive()
    return 0


if __name__ == '__main__':
    sys.exit(main())
