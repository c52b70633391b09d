"""Extraction of interpolated values from anonymous declarations into custom properties.

An anonymous declaration is CSS text written inline -- as opposed to in a stylesheet of its own -- which may embed values computed by the host application, with the `%{value}` notation, e.g.:

    background-color: %{theme.background}; color: red

Since CSS text is compiled ahead of time, interpolated values cannot be part of it. Instead, every interpolation is replaced with a reference to a custom property ("anonymous variable") which the application sets at run-time:

    background-color: var(--anonymous_var_1); color: red

An interpolation may name a formatter for the value, after a `#` (e.g. `%{theme.background#colors.css_value}`), which is recorded but never interpreted here.

Anonymous variables are numbered sequentially by a `VariableMinter`. The same minter must be used for all anonymous declarations compiled into the same stylesheet, so that their variables are distinct.
"""

from .classifying import IdentifierKind, iter_identifiers
from .utils import CompileError, join, Location

from csspring.syntax.parsing import parse_stylesheet

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
import re
from typing import TypeAlias

logger = logging.getLogger(__name__)

ANONYMOUS_CLASS_NAME = 'csshash_anonymous_class' # The class anonymous declarations are compiled as rules of
PLACEHOLDER_CLASS = 'csshash_internal_only_class'
PLACEHOLDER_VARIABLE = '--csshash_internal_only_variable'

FORMATTER_PATTERN = re.compile(r'[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*') # A dotted path, e.g. `colors.css_value`

class InterpolationError(CompileError):
    """Class of errors raised for malformed `%{...}` interpolations."""
    pass

@dataclass(frozen=True, slots=True)
class LiteralPart:
    text: str

@dataclass(frozen=True, slots=True)
class InterpretedPart:
    value: str # The interpolated value, opaque
    formatter: str | None = None

Part: TypeAlias = LiteralPart | InterpretedPart

@dataclass(frozen=True, slots=True)
class AnonymousVariable:
    name: str # E.g. `anonymous_var_1`
    value: str
    formatter: str | None = None
    @property
    def css_variable(self) -> str:
        """The custom property name of the variable, e.g. `--anonymous_var_1`."""
        return '--' + self.name
    @property
    def reference(self) -> str:
        """The CSS text referencing the variable, e.g. `var(--anonymous_var_1)`."""
        return f'var({self.css_variable})'

class VariableMinter:
    """Source of sequentially numbered anonymous variables.

    Numbering starts at 1 and only ever increases, except when the minter is explicitly restarted, which is only meant for producing reproducible output in tests.
    """
    prefix: str = 'anonymous_var'
    count: int
    def __init__(self):
        self.count = 0
    def mint(self, part: InterpretedPart) -> AnonymousVariable:
        self.count += 1
        return AnonymousVariable(f'{self.prefix}_{self.count}', part.value, part.formatter)
    def restart(self) -> None:
        self.count = 0

def parse_parts(text: str, *, location: Location | None = None) -> list[Part]:
    """Split text into literal parts and interpolations.

    E.g. `'color: %{fg}; '` is split into `LiteralPart('color: ')`, `InterpretedPart('fg')` and `LiteralPart('; ')`. Braces inside an interpolation must be balanced.

    :raises InterpolationError: for an unterminated or empty interpolation
    """
    parts: list[Part] = []
    literal_start = 0
    while (start := text.find('%{', literal_start)) != -1:
        depth, cursor = 1, start + 2
        while depth and cursor < len(text):
            match text[cursor]:
                case '{':
                    depth += 1
                case '}':
                    depth -= 1
            cursor += 1
        if depth:
            raise InterpolationError(f'Unterminated interpolation: {text[start:]!r}', location=location)
        body = text[start + 2:cursor - 1]
        value, separator, formatter = body.rpartition('#')
        if not (separator and value.strip() and FORMATTER_PATTERN.fullmatch(formatter.strip())): # The `#` is part of the value (e.g. `%{"#fff"}`), if at all present
            value, formatter = body, None
        if not value.strip():
            raise InterpolationError(f'Empty interpolation: {text[start:cursor]!r}', location=location)
        if start > literal_start:
            parts.append(LiteralPart(text[literal_start:start]))
        parts.append(InterpretedPart(value.strip(), formatter.strip() if formatter else None))
        literal_start = cursor
    if literal_start < len(text):
        parts.append(LiteralPart(text[literal_start:]))
    return parts

def substitute(parts: Iterable[Part], minter: VariableMinter) -> tuple[list[AnonymousVariable], str]:
    """Replace every interpolation with a reference to a newly minted anonymous variable.

    :returns: The minted variables, in order, and the text with interpolations substituted
    """
    variables: list[AnonymousVariable] = []
    chunks: list[str] = []
    for part in parts:
        match part:
            case LiteralPart(text):
                chunks.append(text)
            case InterpretedPart():
                variables.append(variable := minter.mint(part))
                chunks.append(variable.reference)
                logger.debug('Minted %s for %r', variable.css_variable, part.value)
    return variables, join(chunks)

def inferred_do_not_hash(parts: Sequence[Part], *, location: Location | None = None) -> list[str]:
    """Infer which variables referenced by anonymous declarations are defined elsewhere.

    A variable the declarations reference with `var(--foo)` without themselves defining it with `--foo: ...`, is assumed to be defined by some other stylesheet, under its unhashed name -- hashing it here would thus break the reference.

    :returns: The names (with the leading `--`) of such variables, sorted
    """
    declarations = join(part.text if isinstance(part, LiteralPart) else f'var({PLACEHOLDER_VARIABLE})' for part in parts)
    stylesheet = parse_stylesheet(f'\n.{PLACEHOLDER_CLASS} {{\n{declarations}\n}}\n', location=location.path if location else None)
    occurrences = [ occurrence for occurrence in iter_identifiers(stylesheet, allow_potential_accidental_hashing=True) if occurrence.kind == IdentifierKind.VARIABLE ]
    defined = { occurrence.name for occurrence in occurrences if occurrence.definition }
    referenced = { occurrence.name for occurrence in occurrences if not occurrence.definition }
    return sorted(referenced - defined - { PLACEHOLDER_VARIABLE })

@dataclass(frozen=True)
class AnonymousDeclarations:
    """A block of anonymous declarations, compiled as the body of a rule for the `anonymous_class_name` class."""
    original: str
    location: Location | None
    parts: tuple[Part, ...]
    inferred_do_not_hash: tuple[str, ...]
    anonymous_variables: tuple[AnonymousVariable, ...]
    substituted_declarations: str
    anonymous_class_name: str = ANONYMOUS_CLASS_NAME
    @classmethod
    def create(cls, text: str, *, location: Location | None = None, minter: VariableMinter | None = None) -> 'AnonymousDeclarations':
        """Parse anonymous declarations.

        :param text: The declarations, with interpolations
        :param location: Where the declarations were found, for errors
        :param minter: The minter to number anonymous variables with; a new one if not given
        """
        parts = parse_parts(text, location=location)
        variables, substituted = substitute(parts, minter or VariableMinter())
        return cls(text, location, tuple(parts), tuple(inferred_do_not_hash(parts, location=location)), tuple(variables), substituted)
    def always_hash(self) -> frozenset[str]:
        """Names which must be hashed regardless of configuration, being synthesized for, and private to, this block."""
        return frozenset((self.anonymous_class_name, *(variable.css_variable for variable in self.anonymous_variables)))
    def to_stylesheet_string(self) -> str:
        return f'\n.{self.anonymous_class_name} {{ {self.substituted_declarations} }}'

@dataclass(frozen=True)
class AnonymousStylesheet:
    """An entire stylesheet with interpolations, as opposed to a block of declarations (see `AnonymousDeclarations`)."""
    original: str
    location: Location | None
    parts: tuple[Part, ...]
    anonymous_variables: tuple[AnonymousVariable, ...]
    substituted_stylesheet: str
    @classmethod
    def create(cls, text: str, *, location: Location | None = None, minter: VariableMinter | None = None) -> 'AnonymousStylesheet':
        """See `AnonymousDeclarations.create`."""
        parts = parse_parts(text, location=location)
        variables, substituted = substitute(parts, minter or VariableMinter())
        return cls(text, location, tuple(parts), tuple(variables), substituted)
    def always_hash(self) -> frozenset[str]:
        return frozenset(variable.css_variable for variable in self.anonymous_variables)
    def to_stylesheet_string(self) -> str:
        return self.substituted_stylesheet
