"""
Commands module behavioral tests (declaration, parsing, dispatch, help, boundary).

Scope
- Validate declaration-time defects (signatures, ambiguous grammars, names, sealing).
- Validate command parsing outcomes and contextualized usage errors.
- Validate group dispatch, the help token and group callbacks.
- Validate usage lines and help documents built from live declarations.
- Validate the invoke boundary (stdout/stderr and exit status).

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (command, group, invoke, Positional, Option, Flag).
"""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import TestCase

from cmdtree import Command, Config, Group, Positional, Option, Flag, command, group, invoke, integer
from cmdtree.faults import (
    AmbiguousGrammarError,
    CommandExpectedError,
    ConversionError,
    DuplicateNameError,
    ExtraArgumentsError,
    MissingArgumentError,
    SealedError,
    SignatureError,
    UnknownCommandError,
    UnknownFlagError,
)
from cmdtree.tokenizer import Request
from cmdtree.utils import Unset


def service_tree():
    @group
    def service(*, verbose=Flag("-v")):
        return "service"

    @service.command
    def start():
        return "started"

    check = Group(parent=service, name="check")

    @check.command
    def database(host=Option("--host"), port=Option("--port", type=integer)):
        return host, port

    return service, start, check, database


class TestCommandDeclaration(TestCase):
    """Defects caught while a tree is declared."""

    def testParameterWithoutSpecRaises(self):
        with self.assertRaises(SignatureError):
            @command
            def tool(name):
                pass

    def testPositionalOnKeywordParameterRaises(self):
        with self.assertRaises(SignatureError):
            @command
            def tool(*, name=Positional()):
                pass

    def testFlagOnStandardParameterRaises(self):
        with self.assertRaises(SignatureError):
            @command
            def tool(verbose=Flag("-v")):
                pass

    def testOptionOnKeywordParameterRaises(self):
        with self.assertRaises(SignatureError):
            @command
            def tool(*, color=Option("--color")):
                pass

    def testGroupRejectsPositionals(self):
        with self.assertRaises(SignatureError):
            @group
            def tool(name=Positional(), /):
                pass

    def testAmbiguousGrammarFailsAtDeclaration(self):
        with self.assertRaises(AmbiguousGrammarError):
            @command
            def cp(sources=Positional(nargs="+"), dests=Positional(nargs="+"), /):
                pass

    def testDuplicateAliasRaises(self):
        with self.assertRaises(DuplicateNameError):
            @command
            def tool(*, all=Flag("-a --all"), almost=Flag("-a")):
                pass

    def testDuplicateChildNameRaises(self):
        service, *_ = service_tree()
        with self.assertRaises(DuplicateNameError):
            service.command(lambda: None, name="start")
        with self.assertRaises(DuplicateNameError):
            Group(parent=service, name="check")

    def testHelpTokenIsReserved(self):
        service, *_ = service_tree()
        with self.assertRaises(DuplicateNameError):
            service.command(lambda: None, name="help")

    def testTreeIsSealedAfterParse(self):
        service, *_ = service_tree()
        service.parse(["start"])
        with self.assertRaises(SealedError):
            service.command(lambda: None, name="stop")

    def testMetavarsDefaultToParameterNames(self):
        @command
        def cp(source=Positional(nargs="+"), dest=Positional(), /, *, force=Flag("-f"), recursive=Flag("-r")):
            pass

        self.assertEqual(cp.usage(), "Usage: cp [OPTION]... SOURCE... DEST")

    def testDocstringFillsSummaryAndDetails(self):
        @command
        def tool():
            """
            Do the thing.

            First detail.

            Second detail.
            """

        self.assertEqual(tool.name, "tool")
        self.assertEqual(tool.summary, "Do the thing.")
        self.assertEqual(tool.details, "First detail.\n\nSecond detail.")

    def testSpecsWithoutMetavarOrDescription(self):
        @command
        def fetch(url=Positional(), /, host=Option("--host")):
            return url, host

        self.assertEqual(fetch.usage(), "Usage: fetch [OPTION]... URL")
        self.assertEqual(fetch.run(["--host", "db", "x"]), ("x", "db"))

    def testMissingMetadataIsUnset(self):
        tool = Command(lambda: None, name="tool")
        self.assertIs(tool.parent, Unset)
        self.assertIs(tool.summary, Unset)
        self.assertIs(tool.details, Unset)
        self.assertIs(tool.version, Unset)

    def testCommandIsStillCallable(self):
        @command
        def add(a=Positional(type=integer), b=Positional(type=integer), /):
            return a + b

        self.assertEqual(add(2, 3), 5)


class TestCommandParsing(TestCase):
    """Outcomes and usage errors of single commands."""

    def testRepeatedArgs(self):
        @command
        def tool(x=Positional(), y=Positional(), zs=Positional("Z", nargs="+"), /):
            pass

        outcome = tool.parse(["x", "y", "z1", "z2", "z3"])
        self.assertIsNone(outcome.request)
        self.assertIs(outcome.node, tool)
        self.assertEqual(outcome.chain, ((tool, ("x", "y", ["z1", "z2", "z3"]), {}),))

        for tokens in (["x"], ["x", "y"]):
            with self.subTest(tokens=tokens), self.assertRaises(MissingArgumentError):
                tool.parse(tokens)

        self.assertIs(tool.parse(["-h", "foo", "bar"]).request, Request.HELP)

    def testOptionalArgs(self):
        @command
        def tool(x=Positional(nargs="?"), y=Positional(nargs="?"), z=Positional(), /):
            pass

        self.assertEqual(tool.parse(["z"]).chain[-1][1], (None, None, "z"))
        self.assertEqual(tool.parse(["y", "z"]).chain[-1][1], (None, "y", "z"))
        self.assertEqual(tool.parse(["x", "y", "z"]).chain[-1][1], ("x", "y", "z"))
        self.assertIs(tool.parse(["-h", "foo", "bar"]).request, Request.HELP)
        with self.assertRaises(ExtraArgumentsError):
            tool.parse(["x", "y", "z", "a"])

    def testValuesAreBoundByParameterKind(self):
        @command
        def ls(files=Positional("FILE", nargs="*"), /, width=Option("-w --width", type=integer, default=80), *, all=Flag("-a --all")):
            pass

        _, args, kwargs = ls.parse("-a --width=100 docs src").chain[-1]
        self.assertEqual(args, (["docs", "src"], 100))
        self.assertEqual(kwargs, {"all": True})

        _, args, kwargs = ls.parse([]).chain[-1]
        self.assertEqual(args, ([], 80))
        self.assertEqual(kwargs, {"all": False})

    def testEscapedTokensArePositional(self):
        @command
        def tool(args=Positional("ARG", nargs="*"), /, *, all=Flag("-a")):
            pass

        self.assertEqual(tool.parse(["---", "-a", "-x"]).chain[-1][1], (["-a", "-x"],))

    def testParseWithAndWithoutVersion(self):
        @command
        def plain(*, all=Flag("-a")):
            pass

        @command(version="1.0")
        def versioned(*, all=Flag("-a")):
            pass

        self.assertEqual(plain.parse(["-a"]).chain[-1][2], {"all": True})
        self.assertEqual(versioned.parse(["-a"]).chain[-1][2], {"all": True})
        self.assertEqual(versioned.version, "1.0")

    def testCollectionDefaultIsNotShared(self):
        @command
        def collect(items=Positional("ITEM", nargs="*", default=[]), /):
            items.append("seen")
            return items

        self.assertEqual(collect.run([]), ["seen"])
        self.assertEqual(collect.run([]), ["seen"])

    def testInterleaveOff(self):
        @command(interleave=False)
        def exec(args=Positional("ARG", nargs="*"), /, *, verbose=Flag("-v")):
            pass

        _, args, kwargs = exec.parse(["ls", "-v"]).chain[-1]
        self.assertEqual(args, (["ls", "-v"],))
        self.assertEqual(kwargs, {"verbose": False})

    def testPositionalConversion(self):
        @command
        def tool(count=Positional("N", type=integer), /):
            pass

        self.assertEqual(tool.parse(["7"]).chain[-1][1], (7,))
        with self.assertRaises(ConversionError) as context:
            tool.parse(["seven"])
        self.assertEqual(context.exception.options["input"], "N")
        self.assertIs(tool.parse(["seven", "-h"]).request, Request.HELP)

    def testFaultsCarryRouteAndHint(self):
        @command
        def tool(*, color=Flag("--color")):
            pass

        with self.assertRaises(UnknownFlagError) as context:
            tool.parse(["--colour"])
        fault = context.exception
        self.assertEqual(fault.options["route"], "tool")
        self.assertIs(fault.options["node"], tool)
        self.assertEqual(fault.hint, "did you mean '--color'? try 'tool --help' for more information")

    def testLongFormHint(self):
        @command
        def tool(name=Option("-name")):
            pass

        with self.assertRaises(ExtraArgumentsError) as context:
            tool.parse(["extra"])
        self.assertEqual(context.exception.hint, "try 'tool -help' for more information")
        self.assertIs(tool.parse(["-help"]).request, Request.HELP)

    def testVersionRequest(self):
        @command(version="1.2.3")
        def tool(*, verbose=Flag("--verbose")):
            pass

        self.assertIs(tool.parse(["-v"]).request, Request.VERSION)
        self.assertIs(tool.parse(["--version"]).request, Request.VERSION)

    def testCustomConfig(self):
        @command(config=Config(helps="--usage"))
        def tool():
            pass

        self.assertIs(tool.parse(["--usage"]).request, Request.HELP)
        with self.assertRaises(UnknownFlagError):
            tool.parse(["--help"])


class TestGroupDispatch(TestCase):
    """Group resolution, the help token and callback chains."""

    def testGroupUsage(self):
        service, start, check, database = service_tree()
        self.assertEqual(service.usage(), "Usage: service [OPTION] GROUP | COMMAND")
        self.assertEqual(start.usage(), "Usage: service start")
        self.assertEqual(check.usage(), "Usage: service check COMMAND")
        self.assertEqual(database.usage(), "Usage: service check database [OPTION]...")

    def testGroupRun(self):
        service, start, check, database = service_tree()
        self.assertEqual(service.run(["start"]), "started")
        self.assertEqual(service.run(["check", "database", "--port", "5"]), (None, 5))

    def testDispatchChain(self):
        service, start, check, database = service_tree()
        outcome = service.parse(["-v", "check", "database", "--host", "db"])
        self.assertIs(outcome.node, database)
        self.assertEqual(outcome.chain, (
            (service, (), {"verbose": True}),
            (check, (), {}),
            (database, ("db", None), {}),
        ))

    def testGroupFlagsStopAtCommandName(self):
        service, start, *_ = service_tree()
        with self.assertRaises(UnknownFlagError) as context:
            service.parse(["start", "-v"])
        self.assertEqual(context.exception.options["route"], "service start")

    def testUnknownCommand(self):
        service, *_ = service_tree()
        with self.assertRaises(UnknownCommandError) as context:
            service.parse(["nope"])
        self.assertIn("nope", str(context.exception))
        self.assertEqual(str(context.exception), "'nope' is not a service command")

    def testUnknownCommandSuggestion(self):
        service, *_ = service_tree()
        with self.assertRaises(UnknownCommandError) as context:
            service.parse(["strat"])
        self.assertTrue(context.exception.hint.startswith("did you mean 'start'?"))

    def testCommandExpected(self):
        service, *_ = service_tree()
        with self.assertRaises(CommandExpectedError):
            service.parse([])
        with self.assertRaises(CommandExpectedError) as context:
            service.parse(["check"])
        self.assertEqual(context.exception.options["route"], "service check")

    def testHelpToken(self):
        service, start, check, database = service_tree()
        self.assertEqual(service.parse(["help"]), (Request.HELP, service, ()))
        self.assertEqual(service.parse(["help", "check"]), (Request.HELP, check, ()))
        self.assertEqual(service.parse(["help", "check", "database"]), (Request.HELP, database, ()))
        self.assertEqual(service.parse(["check", "help", "database"]), (Request.HELP, database, ()))
        with self.assertRaises(UnknownCommandError):
            service.parse(["help", "nope"])

    def testHelpFlagAtEveryLevel(self):
        service, start, check, database = service_tree()
        self.assertEqual(service.parse(["-h"]).node, service)
        self.assertEqual(service.parse(["check", "--help"]).node, check)
        self.assertEqual(service.parse(["check", "database", "--port", "x", "-h"]).node, database)

    def testEscapeBeforeCommandReachesChild(self):
        @group
        def tool():
            pass

        @tool.command
        def echo(words=Positional("WORD", nargs="*"), /, *, n=Flag("-n")):
            pass

        _, args, kwargs = tool.parse(["---", "echo", "-n", "x"]).chain[-1]
        self.assertEqual(args, (["-n", "x"],))
        self.assertEqual(kwargs, {"n": False})

        _, args, kwargs = tool.parse(["echo", "-n", "---", "-n"]).chain[-1]
        self.assertEqual(args, (["-n"],))
        self.assertEqual(kwargs, {"n": True})

    def testCustomHelpCommand(self):
        @group(config=Config(helpcommand="explain"))
        def tool():
            pass

        @tool.command
        def run():
            pass

        self.assertIs(tool.parse(["explain", "run"]).request, Request.HELP)
        with self.assertRaises(UnknownCommandError):
            tool.parse(["help", "run"])

    def testVersionFromNearestAncestor(self):
        @group(version="2.0")
        def tool():
            pass

        @tool.command
        def run():
            pass

        self.assertEqual(tool.parse(["run", "--version"]), (Request.VERSION, run, ()))


class TestHelpDocuments(TestCase):
    """Help built from live declarations."""

    def testCommandHelp(self):
        @command(name="ls", config=Config(width=80))
        def ls(
                files=Positional("FILE", nargs="*"),
                /,
                hide=Option("--hide", metavar="PATTERN", descr="do not list implied entries matching shell PATTERN"),
                *,
                long=Flag("-l", descr="use a long listing format"),
                color=Flag("--color", descr="colorize the output"),
                all=Flag("-a --all", descr="do not ignore entries starting with ."),
                trace=Flag("--trace", hidden=True),
        ):
            """
            List information about the FILEs (current directory by default).

            The LS_COLORS environment variable can be used instead of --color.
            """

        self.assertEqual(str(ls.help()), (
            "Usage: ls [OPTION]... [FILE]...\n"
            "\n"
            "List information about the FILEs (current directory by default).\n"
            "\n"
            "Options:\n"
            "  --hide PATTERN  do not list implied entries matching shell PATTERN\n"
            "  -l              use a long listing format\n"
            "  --color         colorize the output\n"
            "  -a, --all       do not ignore entries starting with .\n"
            "\n"
            "The LS_COLORS environment variable can be used instead of --color.\n"
        ))

    def testArgumentsList(self):
        @command(config=Config(width=80))
        def cp(source=Positional(nargs="+", descr="files to copy"), dest=Positional(descr="target"), /):
            """Copy files."""

        self.assertEqual(str(cp.help()), (
            "Usage: cp SOURCE... DEST\n"
            "\n"
            "Copy files.\n"
            "\n"
            "Arguments:\n"
            "  SOURCE  files to copy\n"
            "  DEST    target\n"
        ))

    def testGroupHelp(self):
        @group(config=Config(width=80))
        def git(path=Option("-C", metavar="PATH", descr="Run as if git was started in PATH.")):
            """Git is a fast, scalable, distributed revision control system."""

        @git.command
        def status(pathspec=Positional(nargs="*"), /, *, short=Flag("-s --short")):
            """Show the working tree status"""

        @git.command
        def init(*, quiet=Flag("-q --quiet"), bare=Flag("--bare")):
            """Create an empty Git repository"""

        remote = Group(parent=git, name="remote", summary="Manage the set of repositories you track")
        remote.command(lambda: None, name="add")

        self.assertEqual(str(git.help()), (
            "Usage: git [OPTION] GROUP | COMMAND\n"
            "\n"
            "Git is a fast, scalable, distributed revision control system.\n"
            "\n"
            "Options:\n"
            "  -C PATH  Run as if git was started in PATH.\n"
            "\n"
            "Groups:\n"
            "  remote  Manage the set of repositories you track\n"
            "\n"
            "Commands:\n"
            "  status  Show the working tree status\n"
            "  init    Create an empty Git repository\n"
        ))


class TestInvokeBoundary(TestCase):
    """Printing and exit status at the invoke boundary."""

    def testRunReturnsCommandResult(self):
        @command
        def add(a=Positional(type=integer), b=Positional(type=integer), /):
            return a + b

        self.assertEqual(invoke(add, "2 3"), 5)
        self.assertEqual(invoke(add, ["2", "3"]), 5)

    def testHelpPrintsAndExitsZero(self):
        @command(config=Config(width=80))
        def tool():
            """Do the thing."""

        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            invoke(tool, "--help")
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue(), "Usage: tool\n\nDo the thing.\n")

    def testVersionPrintsAndExitsZero(self):
        @group(version="1.2.3")
        def tool():
            pass

        @tool.command
        def run():
            pass

        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            invoke(tool, "run --version")
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue(), "tool 1.2.3\n")

    def testUsageErrorPrintsAndExitsOne(self):
        @command
        def tool(*, color=Flag("--color")):
            pass

        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            invoke(tool, "--bogus")
        self.assertEqual(context.exception.code, 1)
        self.assertEqual(
            stderr.getvalue(),
            "tool: unrecognized flag '--bogus'\ntry 'tool --help' for more information\n",
        )

    def testInvokeWrapsPlainCallables(self):
        def echo(words=Positional("WORD", nargs="*"), /):
            return " ".join(words)

        self.assertEqual(invoke(echo, "hello world"), "hello world")

    def testInvokeRejectsNonCallables(self):
        with self.assertRaises(TypeError):
            invoke(42)

    def testDirectConstruction(self):
        tool = Command(lambda: "done", name="tool")
        self.assertEqual(tool.run([]), "done")
        self.assertEqual(repr(tool), "command(name='tool', route='tool')")


if __name__ == "__main__":
    unittest.main()
