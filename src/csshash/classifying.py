"""Classification of identifiers in a parsed stylesheet, and in-place rewriting of the tokens that spell them.

A stylesheet is parsed by `csspring` into a tree of products (lists) and tokens. Of all the tokens in the tree, three kinds of identifiers are of interest:

* class names, i.e. identifier tokens preceded by a `.` delimiter in the prelude ("selector") of a qualified rule, e.g. `foo` in `.foo > a { ... }`
* ids, i.e. hash tokens in a prelude, e.g. `main` in `#main { ... }`
* custom properties ("variables"), both at their definition (`--foo: 1px`) and their reference (`var(--foo)`)

Classification of prelude tokens depends only on the token that precedes them, which is tracked with the `Lookback` state threaded through a left-to-right fold over the prelude. Arguments of the `:not(...)`, `:has(...)`, `:where(...)` and `:is(...)` pseudo-class functions are selectors themselves and are folded over recursively, by the same procedure. Identifiers inside these functions have not always been hashed, so unless hashing them was explicitly allowed, any such identifier that is not configured to be rewritten is an error (see `UnsafeHashingChangeError`).
"""

from .utils import CompileError, Location, locate, quoted

from csspring.syntax.parsing import ComponentValue, Declaration, Function, QualifiedRule, StyleSheet
from csspring.syntax.tokenizing import ColonToken, DelimToken, FunctionToken, HashToken, IdentToken, Token, WhitespaceToken
from csspring.utils import is_custom_property_name_string

from collections.abc import Callable, Collection, Container, Iterable, Mapping, MutableSequence
from dataclasses import dataclass, field, replace
from enum import auto, Enum, StrEnum
import re
from typing import cast, TypeAlias

SELECTOR_FUNCTIONS = frozenset(('not', 'has', 'where', 'is')) # Pseudo-class functions whose arguments are [nested] selectors

class IdentifierKind(StrEnum):
    """The role an identifier plays at some place in a stylesheet; the same name may play several roles across a stylesheet."""
    CLASS = auto()
    ID = auto()
    VARIABLE = auto()

class Usage(StrEnum):
    """How an identifier is used across an entire stylesheet, as far as classes and ids go."""
    ONLY_CLASS = auto()
    ONLY_ID = auto()
    BOTH = auto()
    @classmethod
    def of(cls, kinds: Container[IdentifierKind]) -> 'Usage | None':
        """Determine usage from the set of kinds an identifier was observed as.

        :returns: The usage, or `None` if the identifier was used as neither a class nor an id (i.e. only as a variable)
        """
        match (IdentifierKind.CLASS in kinds, IdentifierKind.ID in kinds):
            case (True, True): return cls.BOTH
            case (True, False): return cls.ONLY_CLASS
            case (False, True): return cls.ONLY_ID
            case _: return None

class Lookback(Enum):
    """The significant token last seen by the fold over a prelude."""
    OTHER = auto()
    DOT = auto()
    COLON = auto()

@dataclass(frozen=True, slots=True)
class Occurrence:
    """An identifier found in a stylesheet."""
    kind: IdentifierKind
    name: str # As written in the stylesheet, sans the `.` or `#`; custom property names retain the leading `--`
    location: Location | None = field(default=None, compare=False)
    definition: bool = False # Whether this is a `--foo: ...` declaration (as opposed to a `var(--foo)` reference); always false for classes and ids

Visitor: TypeAlias = Callable[[Occurrence], str] # Called for every occurrence, returns the text to replace the identifier with

class UnsafeHashingChangeError(CompileError):
    """Class of errors raised when an identifier which previously would not have been hashed would now be hashed.

    Raised for identifiers found inside `:not(...)`, `:has(...)`, `:where(...)` and `:is(...)` selector functions, and for newly observed custom properties, unless the permissive mode (`allow_potential_accidental_hashing`) is enabled.
    """
    identifiers: frozenset[str]
    def __init__(self, identifiers: Iterable[str], *, location: Location | None = None):
        self.identifiers = frozenset(identifiers)
        super().__init__(unsafe_hashing_message(self.identifiers), location=location)

def unsafe_hashing_message(identifiers: Collection[str]) -> str:
    listing = quoted(identifiers)
    return f"""The following identifiers will be hashed when they previously were not: {listing}
If your application relies on the identifiers being unhashed, this could
potentially break the styles of your app. To enable hashing, set
`allow_potential_accidental_hashing` to true.

To disable hashing and keep the default behavior, add the identifiers to
`dont_hash` (or to `rewrite`):

dont_hash = [{listing}]
"""

def lookback(value: ComponentValue) -> Lookback:
    """Determine the state of the fold after `value` has been consumed."""
    match value:
        case DelimToken(value='.'):
            return Lookback.DOT
        case ColonToken():
            return Lookback.COLON
        case _:
            return Lookback.OTHER

def classify(state: Lookback, value: ComponentValue) -> IdentifierKind | None:
    """Classify a prelude component value given the state of the fold before it.

    :returns: The kind of identifier `value` is, or `None` if it is not an identifier of interest
    """
    match (state, value):
        case (Lookback.DOT, IdentToken()):
            return IdentifierKind.CLASS
        case (_, HashToken()):
            return IdentifierKind.ID
        case _:
            return None

def opens_selector_function(state: Lookback, value: ComponentValue) -> bool:
    """Determine whether `value` is a pseudo-class function whose arguments form a selector, e.g. the `not(...)` in `:not(.foo)`."""
    match (state, value):
        case (Lookback.COLON, Function()):
            return cast(FunctionToken, value[0]).value.lower() in SELECTOR_FUNCTIONS
        case _:
            return False

def serialize_identifier(name: str) -> str:
    """Escape code points of a name which cannot appear verbatim in an identifier token.

    Simplified from http://drafts.csswg.org/cssom/#serialize-an-identifier -- names handled here always derive from identifiers that were already valid, so only code points outside of the ASCII ident set need escaping; non-ASCII code points are ident code points.
    """
    return re.sub(r'[\x00-\x2c\x2e\x2f\x3a-\x40\x5b-\x5e\x60\x7b-\x7f]', lambda m: '\\' + m[0], name)

def renamed(token: IdentToken | HashToken, name: str) -> Token:
    """Return a token equivalent to `token`, but spelling `name` instead; the token itself is returned if the name does not change, preserving its source text verbatim."""
    if name == token.value:
        return token
    match token:
        case HashToken():
            return replace(token, value=name, source='#' + serialize_identifier(name))
        case _:
            return replace(token, value=name, source=serialize_identifier(name))

@dataclass
class Traversal:
    """A single walk over a stylesheet, calling a visitor for every class, id and variable found and substituting the text it returns.

    The walk covers preludes of all qualified rules -- including those nested in other rules and in at-rules -- along with names of all declarations and every `var()` reference, including `var()` references in fallback values of other `var()` references.
    """
    visit: Visitor
    rewrite: Container[str] = frozenset() # Identifiers which may appear inside selector functions without hashing being explicitly allowed
    allow_potential_accidental_hashing: bool = False
    locations: Mapping[int, Location] = field(default_factory=dict) # See `locate`
    def emit(self, kind: IdentifierKind, token: IdentToken | HashToken, *, definition: bool = False, inside_selector_function: bool = False) -> Token:
        occurrence = Occurrence(kind, token.value, self.locations.get(id(token)), definition)
        if inside_selector_function and not (self.allow_potential_accidental_hashing or occurrence.name in self.rewrite):
            raise UnsafeHashingChangeError((occurrence.name,), location=occurrence.location)
        return renamed(token, self.visit(occurrence))
    def selector(self, values: MutableSequence[ComponentValue], *, inside_selector_function: bool = False) -> None:
        """Fold over the component values of a selector (a rule's prelude or arguments of a selector function), rewriting them in place."""
        state = Lookback.OTHER
        for index, value in enumerate(values):
            if (kind := classify(state, value)):
                values[index] = self.emit(kind, cast(IdentToken | HashToken, value), inside_selector_function=inside_selector_function)
            elif opens_selector_function(state, value):
                self.selector(cast(MutableSequence[ComponentValue], cast(Function, value).value), inside_selector_function=True)
            state = lookback(value)
    def declaration(self, declaration: Declaration) -> None:
        name = cast(IdentToken, declaration[0])
        if is_custom_property_name_string(name.value):
            declaration[0] = self.emit(IdentifierKind.VARIABLE, name, definition=True)
        self.walk(declaration[1:])
    def function(self, function: Function) -> None:
        if cast(FunctionToken, function[0]).value.lower() == 'var':
            arguments = cast(MutableSequence[ComponentValue], function.value)
            for index, argument in enumerate(arguments):
                match argument:
                    case WhitespaceToken():
                        continue
                    case IdentToken() if is_custom_property_name_string(argument.value):
                        arguments[index] = self.emit(IdentifierKind.VARIABLE, argument)
                break # Only the first [significant] argument names the variable
        self.walk(function[1:])
    def walk(self, product: Iterable) -> None:
        for item in product:
            match item:
                case QualifiedRule():
                    self.selector(cast(MutableSequence[ComponentValue], item.prelude))
                    self.walk(item[1:])
                case Declaration():
                    self.declaration(item)
                case Function():
                    self.function(item)
                case list():
                    self.walk(item)
                case _:
                    pass # A token

def map_stylesheet(stylesheet: StyleSheet, visit: Visitor, *, rewrite: Container[str] = frozenset(), allow_potential_accidental_hashing: bool = False) -> StyleSheet:
    """Rewrite every class, id and variable in a stylesheet, in place.

    :param stylesheet: A stylesheet parsed with `csspring.syntax.parsing.parse_stylesheet`; its `location`, if any, is reported with occurrences
    :param visit: Called with every identifier occurrence in document order, returning the replacement name
    :param rewrite: Names permitted inside selector functions when `allow_potential_accidental_hashing` is false
    :param allow_potential_accidental_hashing: Whether identifiers inside selector functions are visited regardless of `rewrite`
    :returns: `stylesheet`
    :raises UnsafeHashingChangeError: for an identifier inside a selector function that is neither in `rewrite` nor permitted by `allow_potential_accidental_hashing`
    """
    Traversal(visit, rewrite, allow_potential_accidental_hashing, locate(stylesheet, stylesheet.location)).walk(stylesheet)
    return stylesheet

def iter_identifiers(stylesheet: StyleSheet, *, rewrite: Container[str] = frozenset(), allow_potential_accidental_hashing: bool = False) -> list[Occurrence]:
    """List every class, id and variable occurrence in a stylesheet, in document order, leaving the stylesheet unchanged.

    See `map_stylesheet` for the parameters and errors.
    """
    occurrences: list[Occurrence] = []
    def visit(occurrence: Occurrence) -> str:
        occurrences.append(occurrence)
        return occurrence.name
    map_stylesheet(stylesheet, visit, rewrite=rewrite, allow_potential_accidental_hashing=allow_potential_accidental_hashing)
    return occurrences
