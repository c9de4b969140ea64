"""
Flag/option tokenizer.

A Switchboard holds the Flag and Option specs of one command (indexed by every
alias) and splits a token stream into flag values and the residual positional
sequence. Tokens are examined left to right; the first rule that applies wins:

1. the escape token ("---" by default): every following token is positional;
2. "--name=value": an inline option value (a toggle here is an error);
3. "-abc" (unless the command uses long-form single-dash names): expands to
   "-a", "-b", "-c", re-examined from the front of the stream;
4. a toggle alias: binds True;
5. an option alias: binds the next token, whatever it looks like;
6. a help or version alias: stops tokenizing with a request;
7. anything else starting with "-": unknown flag;
8. a positional token: kept in the residual sequence, or, when interleaving
   is off, ends tokenizing with the rest of the stream as residual.

Values are converted only once the whole stream was tokenized, so a help
request wins over a conversion failure elsewhere on the line.
"""
import difflib
import enum
import logging
from collections import deque, namedtuple

from .arguments import Flag, Option, LONGFORM
from .faults import *

logger = logging.getLogger(__name__)


class Request(enum.Enum):
    HELP = "help"
    VERSION = "version"


Scan = namedtuple("Scan", ("residual", "values", "request", "escaped"))


class Switchboard:
    """
    Flag and Option specs of one command, indexed by alias.

    Parameters
    - owner: label used in declaration-time messages (e.g. "command 'ls'").
    """

    def __init__(self, owner="command"):
        self._owner = owner
        self._entries = []
        self._aliases = {}
        self._sealed = False

    @property
    def entries(self):
        """
        (dest, spec) pairs in declaration order.
        """
        return tuple(self._entries)

    @property
    def names(self):
        return tuple(self._aliases)

    @property
    def longform(self):
        """
        True when any alias is a multi-letter single-dash name such as "-name".
        Clusters are not expanded in this mode and help is spelled "-help".
        """
        return any(LONGFORM.fullmatch(name) for name in self._aliases)

    def seal(self):
        self._sealed = True

    def add(self, dest, argument, /):
        if self._sealed:
            raise SealedError(f"{self._owner} flags cannot change after the first parse")
        if not isinstance(argument, Flag | Option):
            raise TypeError(f"{self._owner} switchboard accepts flags and options only")
        for name in argument.names:
            if name in self._aliases:
                raise DuplicateNameError(f"{self._owner} name {name!r} is already in use")
        for name in argument.names:
            self._aliases[name] = (dest, argument)
        self._entries.append((dest, argument))

    def _unknown(self, name, helps, versions):
        suggestions = difflib.get_close_matches(name, (*self._aliases, *helps, *versions), 3)
        return UnknownFlagError(
            "unrecognized flag %r" % name,
            code=FaultCode.UNKNOWN_FLAG,
            title="unknown flag",
            input=name,
            suggestions=tuple(suggestions),
        )

    def scan(self, tokens, /, *, config, interleave=True, version=False):
        """
        Tokenize a stream of command-line tokens.

        Parameters
        - tokens: iterable of strings.
        - config: Config supplying the escape token and help/version spellings.
        - interleave: keep collecting positionals after the first one; when
          False the first positional token ends tokenizing.
        - version: honour the version aliases.

        Returns
        - Scan(residual, values, request, escaped):
          • residual: tuple of positional tokens, in order.
          • values: dict dest -> converted value for every entry (defaults for
            absent ones); empty when a request was made.
          • request: None, Request.HELP or Request.VERSION.
          • escaped: the escape token was consumed; residual tokens after it
            must not be read as flags again.

        Raises
        - UnknownFlagError, FlagAssignmentError, MissingValueError, ConversionError.
        """
        self._sealed = True
        longform = self.longform
        helps = config.help_names(longform)
        versions = config.version_names(longform) if version else ()

        stream = deque(tokens)
        residual = []
        raw = {}
        used = {}
        escaped = False

        while stream:
            token = stream.popleft()

            if token == config.escape:
                residual.extend(stream)
                escaped = True
                break

            if not token.startswith("-"):
                residual.append(token)
                if not interleave:
                    residual.extend(stream)
                    break
                continue

            if "=" in token:
                name, value = token.split("=", 1)
                try:
                    dest, argument = self._aliases[name]
                except KeyError:
                    raise self._unknown(name, helps, versions) from None
                if isinstance(argument, Flag):
                    raise FlagAssignmentError(
                        "%s does not take a value" % name,
                        code=FaultCode.FLAG_ASSIGNMENT,
                        title="flag cannot take a value",
                        input=name,
                    )
                raw[dest], used[dest] = value, name
                continue

            if not longform and LONGFORM.fullmatch(token):
                cluster = ["-" + char for char in token[1:]]
                logger.debug("expanding %r into %s", token, cluster)
                stream.extendleft(reversed(cluster))
                continue

            if token in self._aliases:
                dest, argument = self._aliases[token]
                if isinstance(argument, Flag):
                    raw[dest] = True
                elif not stream:
                    raise MissingValueError(
                        "missing value for argument %s" % token,
                        code=FaultCode.MISSING_VALUE,
                        title="missing value",
                        input=token,
                    )
                else:
                    raw[dest] = stream.popleft()
                used[dest] = token
                continue

            if token in helps:
                return Scan(tuple(residual), {}, Request.HELP, False)
            if token in versions:
                return Scan(tuple(residual), {}, Request.VERSION, False)

            raise self._unknown(token, helps, versions)

        values = {}
        for dest, argument in self._entries:
            if isinstance(argument, Flag):
                values[dest] = raw.get(dest, False)
            elif dest not in raw:
                values[dest] = argument.default
            else:
                try:
                    values[dest] = argument.type(raw[dest])
                except (ValueError, TypeError) as exception:
                    raise ConversionError(
                        "invalid value %r for argument %s" % (raw[dest], used[dest]),
                        code=FaultCode.CONVERSION_FAILED,
                        title="invalid value",
                        input=used[dest],
                        value=raw[dest],
                        reason=str(exception),
                    ) from exception
        return Scan(tuple(residual), values, None, escaped)


__all__ = (
    "Switchboard",
    "Request",
    "Scan",
)
