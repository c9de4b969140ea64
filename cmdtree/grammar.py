"""
Positional grammar: ordered positional slots and the matcher that binds tokens to them.

Slots are appended one at a time. Every append moves the grammar to a new
sequence class through an explicit transition table; an append with no
transition would make some token sequences ambiguous, and is rejected before
the slot is added.

Sequence classes
- INITIAL             no slots yet
- REGULAR             required single slots only
- REGULAR_OPTIONAL    required slots, then optional single slots
- REGULAR_COLLECTION  required slots, then one collection
- OPTIONAL            optional single slots only
- TRAILING_REGULAR    one flexible prefix (optional singles or a collection),
                      then required single slots

Matching runs left to right, except for TRAILING_REGULAR grammars, which are
matched right to left so the trailing required slots take the last tokens and
the flexible prefix takes whatever remains.
"""
import enum
import logging

from .faults import AmbiguousGrammarError, DuplicateNameError, SealedError
from .faults import MissingArgumentError, ExtraArgumentsError, FaultCode
from .utils import Unset

logger = logging.getLogger(__name__)


class Sequence(enum.Enum):
    INITIAL = "initial"
    REGULAR = "regular"
    REGULAR_OPTIONAL = "regular-optional"
    REGULAR_COLLECTION = "regular-collection"
    OPTIONAL = "optional"
    TRAILING_REGULAR = "trailing-regular"


class Shape(enum.Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    COLLECTION = "collection"


_TRANSITIONS = {
    (Sequence.INITIAL, Shape.REQUIRED): Sequence.REGULAR,
    (Sequence.INITIAL, Shape.OPTIONAL): Sequence.OPTIONAL,
    (Sequence.INITIAL, Shape.COLLECTION): Sequence.TRAILING_REGULAR,

    (Sequence.REGULAR, Shape.REQUIRED): Sequence.REGULAR,
    (Sequence.REGULAR, Shape.OPTIONAL): Sequence.REGULAR_OPTIONAL,
    (Sequence.REGULAR, Shape.COLLECTION): Sequence.REGULAR_COLLECTION,

    (Sequence.REGULAR_OPTIONAL, Shape.OPTIONAL): Sequence.REGULAR_OPTIONAL,

    (Sequence.OPTIONAL, Shape.REQUIRED): Sequence.TRAILING_REGULAR,
    (Sequence.OPTIONAL, Shape.OPTIONAL): Sequence.OPTIONAL,

    (Sequence.TRAILING_REGULAR, Shape.REQUIRED): Sequence.TRAILING_REGULAR,
}


def shape(slot, /):
    if slot.collection:
        return Shape.COLLECTION
    return Shape.OPTIONAL if slot.optional else Shape.REQUIRED


class Grammar:
    """
    Ordered positional slots plus their derived sequence class.

    Slots are Positional specs with a resolved metavar. Once match() ran the
    grammar is sealed and further appends raise SealedError.
    """

    def __init__(self, owner="command"):
        self._owner = owner
        self._slots = []
        self._sequence = Sequence.INITIAL
        self._sealed = False

    @property
    def slots(self):
        return tuple(self._slots)

    @property
    def sequence(self):
        return self._sequence

    @property
    def backward(self):
        return self._sequence is Sequence.TRAILING_REGULAR

    def seal(self):
        self._sealed = True

    def append(self, slot, /):
        """
        Append a slot, or raise AmbiguousGrammarError leaving the grammar unchanged.
        """
        if self._sealed:
            raise SealedError(f"{self._owner} positional arguments cannot change after the first parse")
        if any(other.metavar == slot.metavar for other in self._slots):
            raise DuplicateNameError(f"{self._owner} positional argument {slot.metavar!r} is already in use")

        try:
            sequence = _TRANSITIONS[self._sequence, shape(slot)]
        except KeyError:
            raise AmbiguousGrammarError(
                f"{self._owner} positional argument {slot.metavar!r} makes the sequence of positional arguments ambiguous"
                f" ({shape(slot).value} after {self._sequence.value})"
            ) from None

        self._slots.append(slot)
        self._sequence = sequence

    def match(self, tokens, /):
        """
        Bind tokens to slots.

        Returns a list aligned with the slots: a token for single slots, a list
        of tokens for collections, Unset for slots left unset.

        Raises
        - MissingArgumentError: a required slot found no token.
        - ExtraArgumentsError: tokens remain once every slot was considered.
        """
        self._sealed = True
        remaining = list(tokens)
        values = [Unset] * len(self._slots)

        if self.backward:
            logger.debug("matching %d tokens backward against %s", len(remaining), self._owner)
            order = reversed(range(len(self._slots)))
        else:
            order = range(len(self._slots))

        for index in order:
            slot = self._slots[index]
            if not remaining:
                if slot.optional:
                    break
                raise MissingArgumentError(
                    "missing argument %r" % slot.metavar,
                    code=FaultCode.MISSING_ARGUMENT,
                    title="missing argument",
                    input=slot.metavar,
                )
            if slot.collection:
                values[index], remaining = remaining, []
                break
            if self.backward:
                values[index] = remaining.pop()
            else:
                values[index] = remaining.pop(0)

        if remaining:
            raise ExtraArgumentsError(
                "extra arguments on command-line: %s" % " ".join(remaining),
                code=FaultCode.EXTRA_ARGUMENTS,
                title="extra arguments",
                input=tuple(remaining),
            )
        return values


__all__ = (
    "Grammar",
    "Sequence",
    "Shape",
)
