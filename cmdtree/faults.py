"""
cmdtree faults (declaration defects and usage errors) and rendering.

Scope
- DefinitionError: raised while a command tree is being declared (bad alias
  spelling, duplicated names, ambiguous positional grammars, malformed callback
  signatures, mutation of a sealed tree). These are programmer defects; they
  are never rendered for the end user and never caught by the boundary.
- FaultCode: canonical, stable numeric identifiers for every usage error.
- CommandException: base type for usage errors. Carries message + options and
  knows how to render itself through rich and how to surface itself.
- trigger(): central entry point to surface a usage error (raise or print and exit).

UX goals
- One lowercased line saying what went wrong, then one hint, usually
  "try '<route> --help' for more information".
- Styling is opt-in per tree (Config.colorful) and overridable (Config.styles).
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes for usage errors (stable identifiers).

    grouping
    - routing (1110x)
      • UNKNOWN_COMMAND, COMMAND_EXPECTED
    - flags and options (1111x)
      • UNKNOWN_FLAG, FLAG_ASSIGNMENT, MISSING_VALUE, CONVERSION_FAILED
    - positionals (1112x)
      • MISSING_ARGUMENT, EXTRA_ARGUMENTS
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101
    COMMAND_EXPECTED            = 11102

    # --- flag/option errors (11xxx) ---
    UNKNOWN_FLAG                = 11111
    FLAG_ASSIGNMENT             = 11112
    MISSING_VALUE               = 11113
    CONVERSION_FAILED           = 11114

    # --- positional errors (11xxx) ---
    MISSING_ARGUMENT            = 11121
    EXTRA_ARGUMENTS             = 11122


class DefinitionError(Exception):
    """
    Raised at declaration time when a command tree cannot be built as declared.
    """


class MalformedNameError(DefinitionError): ...
class DuplicateNameError(DefinitionError): ...
class AmbiguousGrammarError(DefinitionError): ...
class SignatureError(DefinitionError): ...
class SealedError(DefinitionError): ...


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-message": "#FF4DA6",  # friendly pinky message
            "hint": "italic #9CE19C",  # gentle green hint text
        } | dict(self.options.get("styles", {})))

        colorful = self.options.get("colorful", False)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        line = Text.assemble(
            text(self.options.get("route", ""), "prog-name"),
            ": ",
            text(self.message, "error-message"),
        )
        if colorful and self.code is not None:
            line.append_text(Text.assemble(" [", text(self.code.value, "code"), "]"))

        if not self.hint:
            return line
        return Group(line, text(self.hint, "hint"))

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self, highlight=False, soft_wrap=True)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__traceback__ = self.__traceback__
        return replaced


class UnknownCommandError(CommandException): ...
class CommandExpectedError(CommandException): ...
class UnknownFlagError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class MissingValueError(CommandException): ...
class ConversionError(CommandException): ...
class MissingArgumentError(CommandException): ...
class ExtraArgumentsError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - with shell=True the fault is printed to stderr and the process exits with
      status 1; otherwise the (replaced) fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "DefinitionError",
    "MalformedNameError",
    "DuplicateNameError",
    "AmbiguousGrammarError",
    "SignatureError",
    "SealedError",
    "CommandException",
    "UnknownCommandError",
    "CommandExpectedError",
    "UnknownFlagError",
    "FlagAssignmentError",
    "MissingValueError",
    "ConversionError",
    "MissingArgumentError",
    "ExtraArgumentsError",
    "FaultCode",
    "trigger",
)
