"""
cmdtree command layer: declare, compose and run command trees.

What this module provides
- Command: wraps a Python callable into an executable CLI leaf.
  • Flags, options and positional slots are discovered from the callable's
    defaults (Flag, Option, Positional).
  • The positional grammar is checked while the command is declared, so an
    ambiguous sequence of positional arguments fails at import time.
- Group: a node owning child commands and child groups. It parses its own
  flags, then hands the rest of the line to the child named by the first
  positional token.
- command(...) / group(...): factories usable as decorators.
- invoke(node, prompt): run a tree against sys.argv, a shell-like string or a
  list of tokens; prints help, version or usage errors and exits when needed.

Quick start
    from cmdtree import group, Flag, Option, Positional, invoke

    @group(version="1.0.0")
    def gcloud(*, quiet=Flag("-q --quiet", descr="disable all interactive prompts")):
        '''Manage Google Cloud Platform resources'''

    @gcloud.command
    def info(*, anonymize=Flag("--anonymize", descr="minimize any personal information")):
        '''display information about the environment'''

    if __name__ == "__main__":
        invoke(gcloud)

Design notes
- Command and Group do not inherit from each other; both compose a
  Declaration (flags + positional grammar + callback signature).
- Parsing never writes into a declaration. parse() returns an Outcome naming
  the request (run, help or version), the node it concerns and, for runs, the
  chain of (node, args, kwargs) from the dispatching groups down to the command.
- A tree is sealed by its first parse; later declarations raise SealedError.
"""
import difflib
import inspect
import logging
import os.path
import re
import shlex
import sys
from collections import namedtuple
from collections.abc import Iterable
from inspect import Parameter

from rich.console import Console

from .arguments import Positional, Option, Flag
from .config import Config
from .faults import *
from .formatting import DefinitionList, HelpDocument, PARAGRAPH
from .grammar import Grammar
from .tokenizer import Switchboard, Request
from .utils import *

logger = logging.getLogger(__name__)

Outcome = namedtuple("Outcome", ("request", "node", "chain"))


class NodeType(type):
    """
    Metaclass shared by Command and Group: typename, read-only properties and reprs.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}(name={self.name!r}, route={self.route!r})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _resolve_argument(owner, name, default):
    """
    Return the spec behind a parameter default (Positional, Option or Flag).
    """
    hooks = [hook for hook in ("__positional__", "__option__", "__flag__") if callable(getattr(default, hook, None))]
    if len(hooks) != 1:
        raise SignatureError(f"{owner} parameter {name!r} default must be a positional, an option or a flag")

    argument = getattr(default, hooks[0])()
    if not isinstance(argument, {"__positional__": Positional, "__option__": Option, "__flag__": Flag}[hooks[0]]):
        raise SignatureError(f"{hooks[0]}() returned an unexpected specification")
    return argument


class Declaration:
    """
    Flags, options and positional grammar of one node, read from a callback signature.

    Rules
    - every parameter needs a spec as its default;
    - Positional specs go on positional-only parameters (in grammar order),
      Option specs on standard parameters, Flag specs on keyword-only ones;
    - a Positional or Option without metavar gets the upper-cased parameter name.
    """

    def __init__(self, owner, callback=Unset, /, *, positionals=True):
        self.owner = owner
        self.callback = callback
        self.switchboard = Switchboard(owner)
        self.grammar = Grammar(owner)
        self.parameters = []
        self.positionals = []
        self.arguments = {}

        if callback is Unset:
            return

        try:
            signature = inspect.signature(callback)
        except TypeError:
            raise SignatureError(f"{owner} 'callback' must be callable") from None
        except ValueError:
            raise SignatureError(f"{owner} 'callback' must be an inspectable callable") from None

        for name, parameter in signature.parameters.items():
            if parameter.default is Parameter.empty:
                raise SignatureError(f"{owner} 'callback' parameter {name!r} must have a default")

            argument = _resolve_argument(owner, name, parameter.default)
            if isinstance(argument, Positional):
                if not positionals:
                    raise SignatureError(f"{owner} cannot have positional arguments (parameter {name!r})")
                if parameter.kind is not Parameter.POSITIONAL_ONLY:
                    raise SignatureError(f"{owner} 'callback' positional at parameter {name!r}, parameter must be positional-only")
                if argument.metavar is Unset:
                    argument = argument.__replace__(metavar=name.upper())
                self.grammar.append(argument)
                self.positionals.append(name)
            elif isinstance(argument, Option):
                if parameter.kind is not Parameter.POSITIONAL_OR_KEYWORD:
                    raise SignatureError(f"{owner} 'callback' option at parameter {name!r}, parameter must be standard")
                if argument.metavar is Unset:
                    argument = argument.__replace__(metavar=name.upper())
                self.switchboard.add(name, argument)
            else:
                if parameter.kind is not Parameter.KEYWORD_ONLY:
                    raise SignatureError(f"{owner} 'callback' flag at parameter {name!r}, parameter must be keyword-only")
                self.switchboard.add(name, argument)

            self.parameters.append((name, parameter.kind))
            self.arguments[name] = argument

    def seal(self):
        self.switchboard.seal()
        self.grammar.seal()

    def convert(self, matched, /):
        """
        Convert matched positional tokens; unset slots take their unset value.
        """
        values = {}
        for name, slot, value in zip(self.positionals, self.grammar.slots, matched):
            if value is Unset:
                values[name] = slot.unset()
                continue
            tokens = value if slot.collection else [value]
            converted = []
            for token in tokens:
                try:
                    converted.append(slot.type(token))
                except (ValueError, TypeError) as exception:
                    raise ConversionError(
                        "invalid value %r for argument %s" % (token, slot.metavar),
                        code=FaultCode.CONVERSION_FAILED,
                        title="invalid value",
                        input=slot.metavar,
                        value=token,
                        reason=str(exception),
                    ) from exception
            values[name] = converted if slot.collection else converted[0]
        return values

    def bind(self, values, /):
        """
        Map values by parameter name onto (args, kwargs) for the callback.
        """
        args = ()
        kwargs = {}
        for name, kind in self.parameters:
            if kind is Parameter.KEYWORD_ONLY:
                kwargs[name] = values[name]
            else:
                args += (values[name],)
        return args, kwargs

    def options(self):
        """
        Definition list of the visible flags and options.
        """
        definitions = []
        for _, argument in self.switchboard.entries:
            if argument.hidden:
                continue
            terms = list(argument.names)
            if isinstance(argument, Option):
                terms[-1] = "%s %s" % (terms[-1], argument.metavar)
            definitions.append((terms, argument.descr))
        return DefinitionList("Options", definitions)

    def arguments_list(self):
        return DefinitionList("Arguments", [
            ((slot.metavar,), slot.descr) for slot in self.grammar.slots if slot.descr and not slot.hidden
        ])


def _process_strings(cls, metadata):
    """
    Normalize scalar string metadata fields (name, summary, details, version).

    Strings are trimmed; empty strings are rejected. Unset stays Unset.
    """
    for name in ("name", "summary", "details", "version"):
        if not isinstance(object := metadata[name], str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = object

    if re.search(r"\s", metadata["name"]) or metadata["name"].startswith("-"):
        raise ValueError(f"{cls.__typename__} 'name' must be a single word not starting with '-'")


def _process_docstring(metadata, source):
    """
    Fill summary/details from the callback docstring: first paragraph, then the rest.
    """
    if source is Unset or not (doc := inspect.getdoc(source)):
        return
    paragraphs = [paragraph.strip() for paragraph in PARAGRAPH.split(doc) if paragraph.strip()]
    if metadata["summary"] is Unset and paragraphs:
        metadata["summary"] = paragraphs[0]
    if metadata["details"] is Unset and paragraphs[1:]:
        metadata["details"] = "\n\n".join(paragraphs[1:])


def _process_config(cls, metadata, parent):
    if not isinstance(config := metadata["config"], Config | Unset):
        raise TypeError(f"{cls.__typename__} 'config' must be a config")
    if parent is not Unset and config is not Unset:
        raise TypeError(f"{cls.__typename__} 'config' can only be set on the root of a tree")


def _attach_to_parent(self, parent):
    """
    Register this node under its parent group, enforcing unique names.
    """
    if parent is Unset:
        return
    if parent._sealed:
        raise SealedError(f"{type(parent).__typename__} {parent.route!r} cannot get children after the first parse")
    if self.name == parent.config.helpcommand:
        raise DuplicateNameError(f"{type(self).__typename__} name {self.name!r} is reserved for help requests")
    if parent._children.setdefault(self.name, self) is not self:
        raise DuplicateNameError(f"{type(self).__typename__} name {self.name!r} is already in use in {parent.route!r}")


def _tokens(prompt):
    if prompt is Unset:
        return sys.argv[1:]
    elif isinstance(prompt, str):
        return shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() argument must be a string or an iterable of strings")


class _Node:
    """
    Behaviour common to commands and groups that only reads shared attributes.

    Mixed into Command and Group; carries no state of its own.
    """

    @property
    def root(self):
        node = self
        while node.parent:
            node = node.parent
        return node

    @property
    def path(self):
        path = [node := self]
        while node.parent:
            path.append(node := node.parent)
        return tuple(reversed(path))

    @property
    def route(self):
        return " ".join(node.name for node in self.path)

    @property
    def config(self):
        return coalesce(self.root._config, DEFAULT)

    def _effective_version(self):
        for node in reversed(self.path):
            if node.version is not Unset:
                return node.version
        return Unset

    def _helpflag(self):
        return self.config.help_names(self._declaration.switchboard.longform)[-1]

    def _contextualize(self, fault):
        """
        Attach this node's route and a hint to a fault raised while parsing it.
        """
        hint = "try '%s %s' for more information" % (self.route, self._helpflag())
        if suggestions := fault.options.get("suggestions"):
            hint = "did you mean %r? %s" % (suggestions[0], hint)
        return fault.__replace__(route=self.route, node=self, hint=hint)

    def _seal(self):
        self._sealed = True
        self._declaration.seal()

    def parse(self, prompt=Unset, /):
        """
        Parse tokens against this node.

        Parameters
        - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.

        Returns
        - Outcome(request, node, chain):
          • request: None to run, Request.HELP or Request.VERSION.
          • node: the node the request concerns (the selected command on runs).
          • chain: ((node, args, kwargs), ...) from this node down to the
            command; empty for help and version requests.

        Raises
        - CommandException subclasses for usage errors, with 'route' and 'hint' set.
        """
        return self._resolve(_tokens(prompt), (), help=False)

    def usage(self):
        raise NotImplementedError

    def help(self):
        """
        Build the help document of this node from its current declaration.
        """
        config = self.config
        return HelpDocument(
            self.usage(),
            coalesce(self.summary, ""),
            coalesce(self.details, ""),
            self._lists(),
            config.columns(),
            colorful=config.colorful,
            styles=config.styles,
        )

    def __invoke__(self, prompt=Unset):
        """
        Parse, then act on the outcome.

        - usage error: printed to stderr with a hint; exit status 1.
        - help request: help document on stdout; exit status 0.
        - version request: "<root> <version>" on stdout; exit status 0.
        - run: group callbacks from the outermost group inwards, then the command;
          returns the command's result.
        """
        config = self.config
        try:
            outcome = self.parse(prompt)
        except CommandException as fault:
            trigger(fault, shell=True, colorful=config.colorful, styles=config.styles)

        console = Console(soft_wrap=True, highlight=False)
        if outcome.request is Request.HELP:
            console.print(outcome.node.help(), end="")
            sys.exit(0)
        if outcome.request is Request.VERSION:
            console.print("%s %s" % (outcome.node.root.name, outcome.node._effective_version()), markup=False)
            sys.exit(0)

        result = None
        for node, args, kwargs in outcome.chain:
            logger.debug("running %s", node.route)
            result = node._invoke(args, kwargs)
        return result

    def run(self, prompt=Unset, /):
        return self.__invoke__(prompt)


class Command(_Node, metaclass=NodeType):
    """
    Executable leaf of a command tree.

    Responsibilities
    - Declaration: reads flags, options and positional slots from the callback.
    - Parsing: tokenizes flags (interleaved with positionals unless
      interleave=False), matches positionals, converts values.
    - Invocation: acts as the callback itself when called directly.
    """

    __introspectable__ = (
        "name",
        "summary",
        "details",
        "version",
        "parent",
        "interleave",
    )

    def __new__(
            cls,
            source,
            /,
            parent=Unset,
            name=Unset,
            summary=Unset,
            details=Unset,
            version=Unset,
            *,
            interleave=True,
            config=Unset
    ):
        """
        Construct a Command from a callback.

        Parameters
        - parent: Group | Unset
          Group under which to attach this command.
        - name: defaults to the callback's __name__ (or the script name).
        - summary / details: default to the first and remaining docstring paragraphs.
        - version: enables the version flags for this command.
        - interleave: allow flags after positional arguments.
        - config: Config for a standalone command (roots only).

        Raises
        - TypeError/ValueError on bad metadata types or values.
        - DefinitionError subclasses on signature, naming or grammar defects.
        """
        if not isinstance(parent, Group | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a group")
        if not callable(source):
            raise TypeError(f"{cls.__typename__} 'source' must be callable")

        metadata = {
            "name": coalesce(name, getattr(source, "__name__", os.path.basename(sys.argv[0]))),
            "summary": summary,
            "details": details,
            "version": version,
            "parent": parent,
            "interleave": bool(interleave),
            "config": config,
        }
        _process_docstring(metadata, source)
        _process_strings(cls, metadata)
        _process_config(cls, metadata, parent)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._sealed = False
        self._declaration = Declaration(f"{cls.__typename__} {self.name!r}", source)
        _attach_to_parent(self, parent)
        return self

    def __call__(self, *args, **kwargs):
        return self._declaration.callback(*args, **kwargs)

    def _invoke(self, args, kwargs):
        return self._declaration.callback(*args, **kwargs)

    def _resolve(self, tokens, chain, *, help):
        if help:
            return Outcome(Request.HELP, self, ())

        self._seal()
        declaration = self._declaration
        try:
            scan = declaration.switchboard.scan(
                tokens,
                config=self.config,
                interleave=self.interleave,
                version=self._effective_version() is not Unset,
            )
            if scan.request is not None:
                return Outcome(scan.request, self, ())
            values = scan.values | declaration.convert(declaration.grammar.match(scan.residual))
        except CommandException as fault:
            raise self._contextualize(fault) from None

        args, kwargs = declaration.bind(values)
        return Outcome(None, self, (*chain, (self, args, kwargs)))

    def usage(self):
        parts = ["Usage:", self.route]
        if any(not argument.hidden for _, argument in self._declaration.switchboard.entries):
            parts.append("[OPTION]...")
        for slot in self._declaration.grammar.slots:
            metavar = "[%s]" % slot.metavar if slot.optional else slot.metavar
            parts.append(metavar + "..." if slot.collection else metavar)
        return " ".join(parts)

    def _lists(self):
        return (self._declaration.arguments_list(), self._declaration.options())


class Group(_Node, metaclass=NodeType):
    """
    Dispatching node of a command tree.

    Parsing a group reads its own flags up to the first positional token, then:
    - no token left: "command expected" (or this group's help in help mode);
    - the help token ("help" by default): the rest of the line is resolved in
      help mode, so "prog help run deploy" shows the help of "run deploy";
    - a child name: the rest of the line goes to that child;
    - anything else: "'<token>' is not a <route> command".

    A group callback, when given, receives the group's own option and flag
    values before the selected command runs.
    """

    __introspectable__ = (
        "name",
        "summary",
        "details",
        "version",
        "parent",
        "children",
    )

    def __new__(
            cls,
            source=Unset,
            /,
            parent=Unset,
            name=Unset,
            summary=Unset,
            details=Unset,
            version=Unset,
            *,
            config=Unset
    ):
        if not isinstance(parent, Group | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a group")
        if source is not Unset and not callable(source):
            raise TypeError(f"{cls.__typename__} 'source' must be callable")

        metadata = {
            "name": coalesce(name, getattr(source, "__name__", os.path.basename(sys.argv[0]))),
            "summary": summary,
            "details": details,
            "version": version,
            "parent": parent,
            "config": config,
        }
        _process_docstring(metadata, source)
        _process_strings(cls, metadata)
        _process_config(cls, metadata, parent)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._sealed = False
        self._children = {}
        self._declaration = Declaration(f"{cls.__typename__} {self.name!r}", source, positionals=False)
        _attach_to_parent(self, parent)
        return self

    def __call__(self, *args, **kwargs):
        if self._declaration.callback is Unset:
            return None
        return self._declaration.callback(*args, **kwargs)

    def _invoke(self, args, kwargs):
        return self(*args, **kwargs)

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a child command, directly or as a decorator (@group.command(...)).
        """
        return command(source, self, *args, **kwargs)

    def group(self, source=Unset, /, *args, **kwargs):
        """
        Create a child group, directly or as a decorator (@group.group(...)).
        """
        return group(source, self, *args, **kwargs)

    def _resolve(self, tokens, chain, *, help):
        self._seal()
        config = self.config
        declaration = self._declaration
        try:
            scan = declaration.switchboard.scan(
                tokens,
                config=config,
                interleave=False,
                version=self._effective_version() is not Unset,
            )
            if scan.request is not None:
                return Outcome(scan.request, self, ())

            if not scan.residual:
                if help:
                    return Outcome(Request.HELP, self, ())
                raise CommandExpectedError(
                    "command expected",
                    code=FaultCode.COMMAND_EXPECTED,
                    title="command expected",
                    input=None,
                )

            head, *rest = scan.residual
            if scan.escaped:
                # groups stop at their first positional, so the escape came before head
                rest = [config.escape, *rest]
            if head == config.helpcommand:
                logger.debug("%s: help requested for %r", self.route, rest)
                return self._resolve(rest, chain, help=True)

            try:
                child = self._children[head]
            except KeyError:
                raise UnknownCommandError(
                    "%r is not a %s command" % (head, self.route),
                    code=FaultCode.UNKNOWN_COMMAND,
                    title="unknown command",
                    input=head,
                    suggestions=tuple(difflib.get_close_matches(head, self._children, 3)),
                ) from None
        except CommandException as fault:
            raise self._contextualize(fault) from None

        logger.debug("%s: dispatching %r to %s", self.route, head, child.route)
        args, kwargs = declaration.bind(scan.values)
        return child._resolve(rest, (*chain, (self, args, kwargs)), help=help)

    def usage(self):
        parts = ["Usage:", self.route]
        if any(not argument.hidden for _, argument in self._declaration.switchboard.entries):
            parts.append("[OPTION]")
        kinds = []
        if any(isinstance(child, Group) for child in self._children.values()):
            kinds.append("GROUP")
        if any(isinstance(child, Command) for child in self._children.values()):
            kinds.append("COMMAND")
        if kinds:
            parts.append(" | ".join(kinds))
        return " ".join(parts)

    def _lists(self):
        groups = [((child.name,), coalesce(child.summary, "")) for child in self._children.values() if isinstance(child, Group)]
        commands = [((child.name,), coalesce(child.summary, "")) for child in self._children.values() if isinstance(child, Command)]
        return (
            self._declaration.options(),
            DefinitionList("Groups", groups),
            DefinitionList("Commands", commands),
        )


DEFAULT = Config()


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator that builds one.

    - command(func, ...)          -> Command
    - @command / @command(...)    -> decorator
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def group(source=Unset, /, *args, **kwargs):
    """
    Create a Group or return a decorator that builds one.

    - group(func, ...)            -> Group
    - @group / @group(...)        -> decorator
    - Group(name="check", parent=service) builds a group without callback.
    """
    @rename("group")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@group() must be applied to a callable")
        return Group(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Run a command tree, or a plain callable wrapped as a command.

    Parameters
    - object: a node providing __invoke__(prompt) or a plain callable.
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "Group",
    "Outcome",
    "command",
    "group",
    "invoke",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del NodeType
