"""
Per-tree parsing conventions.

A Config travels with a command tree (the root owns it, children share it) and
is consulted on every parse: which spellings request help or version output,
which token forces the rest of the line to be positional, which positional
token switches a group into help-request mode, and how help and errors are
rendered. Nothing here is process-wide; two trees may use different
conventions side by side.
"""
from types import MappingProxyType

from .arguments import split_names
from .terminal import columns
from .utils import *


class Config:
    """
    Immutable parsing conventions for one command tree.

    Parameters
    - helps / versions: aliases that request help or version output in the
      ordinary mode. Defaults: "-h --help" and "-v --version".
    - longform_helps / longform_versions: the same for commands in long-form
      mode (any multi-letter single-dash alias declared). Defaults: "-help"
      and "-version".
    - escape: token after which every token is positional. Default "---".
    - helpcommand: positional token that puts a group in help-request mode.
      Default "help".
    - width: fixed render width; Unset means "ask the terminal".
    - colorful: style usage errors and help titles through rich.
    - styles: overrides for the rich style palette.
    """
    __introspectable__ = (
        "helps",
        "versions",
        "longform_helps",
        "longform_versions",
        "escape",
        "helpcommand",
        "width",
        "colorful",
        "styles",
    )

    helps = mirror("helps")
    versions = mirror("versions")
    longform_helps = mirror("longform_helps")
    longform_versions = mirror("longform_versions")
    escape = mirror("escape")
    helpcommand = mirror("helpcommand")
    width = mirror("width")
    colorful = mirror("colorful")

    @property
    def styles(self):
        return MappingProxyType(self._styles)

    def __init__(
            self,
            *,
            helps="-h --help",
            versions="-v --version",
            longform_helps="-help",
            longform_versions="-version",
            escape="---",
            helpcommand="help",
            width=Unset,
            colorful=False,
            styles=MappingProxyType({}),
    ):
        self._helps = split_names(type(self).__name__, "helps", helps)
        self._versions = split_names(type(self).__name__, "versions", versions)
        self._longform_helps = split_names(type(self).__name__, "longform_helps", longform_helps)
        self._longform_versions = split_names(type(self).__name__, "longform_versions", longform_versions)

        if not isinstance(escape, str):
            raise TypeError("config 'escape' must be a string")
        elif not escape.startswith("-") or escape.strip() != escape or len(escape) < 2:
            raise ValueError("config 'escape' must be a dash-led token without spaces")
        self._escape = escape

        if not isinstance(helpcommand, str):
            raise TypeError("config 'helpcommand' must be a string")
        elif not helpcommand or helpcommand.startswith("-") or helpcommand.strip() != helpcommand:
            raise ValueError("config 'helpcommand' must be a plain word")
        self._helpcommand = helpcommand

        if not isinstance(width, int | Unset) or isinstance(width, bool):
            raise TypeError("config 'width' must be an integer")
        elif isinstance(width, int) and width < 1:
            raise ValueError("config 'width' must be a positive integer")
        self._width = width

        self._colorful = bool(colorful)
        self._styles = dict(styles)

    def help_names(self, longform, /):
        return self.longform_helps if longform else self.helps

    def version_names(self, longform, /):
        return self.longform_versions if longform else self.versions

    def columns(self):
        """
        Return the render width: the configured width or the terminal's.
        """
        return columns() if self.width is Unset else self.width

    def __replace__(self, **overrides):
        return type(self)(**{name: getattr(self, "_" + name) for name in type(self).__introspectable__} | overrides)

    def __repr__(self):
        return "config(%s)" % ", ".join("%s=%r" % (name, getattr(self, name)) for name in type(self).__introspectable__)

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)


__all__ = (
    "Config",
)
