"""Hashing of the identifiers of a stylesheet, the core procedure of the package.

Every class, id and custom property ("variable") of a stylesheet is renamed by suffixing it with a hash of the stylesheet and the path of its source (e.g. `.nav-bar` becomes `.nav-bar_hash_0f3c2a91be`), which makes the names unique to the stylesheet, yet stable for as long as neither the stylesheet nor its path changes. All identifiers of a stylesheet share the same suffix. Identifiers may be exempted from hashing through `Options` -- rewritten to a given name or to an opaque `Reference`, or left as they are.

The procedure also produces an identifier map: for every identifier (keyed by its "fixed" name, see `csshash.naming`) the set of kinds it was used as, and what it was replaced with. Consumers use the map to generate bindings for the identifiers.
"""

from .classifying import IdentifierKind, iter_identifiers, map_stylesheet, Occurrence, Usage
from .config import Options, Reference
from .naming import NameResolver
from .utils import join, Location
from .validation import check_newly_hashed_variables, check_unused_prefixes, check_unused_rewrites

from csspring.syntax.parsing import parse_stylesheet, source, StyleSheet, tokens
from csspring.syntax.tokenizing import CloseBraceToken, CloseParenToken, ColonToken, CommaToken, DelimToken, FunctionToken, OpenBraceToken, OpenParenToken, SemicolonToken, Token, WhitespaceToken

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
import hashlib
import logging
from typing import cast, TypeAlias

logger = logging.getLogger(__name__)

HASH_LENGTH = 10 # Number of hexadecimal digits of the hash used in names
PLACEHOLDER = '\ue000' # Stands for a `Reference` in serialized text, until the latter is turned into a template; a private-use code point is an ident code point, never found in the stylesheets in question

# Tokens which white-space may be added after or removed from after, without changing the meaning of the stylesheet
SPACE_INSENSITIVE_AFTER = (OpenBraceToken, CloseBraceToken, SemicolonToken, ColonToken, CommaToken, OpenParenToken, FunctionToken)
# Tokens which white-space may be added before or removed from before, ditto
SPACE_INSENSITIVE_BEFORE = (OpenBraceToken, CloseBraceToken, SemicolonToken, CommaToken, CloseParenToken)
COMBINATORS = frozenset('>+~') # Delimiters of selector combinators, white-space around which is insignificant

@dataclass(frozen=True, slots=True)
class Entry:
    """What the identifier map holds for a [fixed] identifier name."""
    kinds: frozenset[IdentifierKind]
    value: str | Reference # The name the identifier was replaced with, or the reference it was rewritten to
    original: str # The identifier as written in the stylesheet
    @property
    def usage(self) -> Usage | None:
        return Usage.of(self.kinds)

IdentifierMap: TypeAlias = Mapping[str, Entry]

@dataclass(frozen=True)
class TransformResult:
    css_string: str # The rewritten stylesheet; a `%`-style format template if `reference_order` is not empty
    identifier_mapping: IdentifierMap
    reference_order: Sequence[Reference] = () # One reference for every `%s` in `css_string`, in order
    hash: str = ''
    def render(self, resolve: Callable[[Reference], str] = str) -> str:
        """Substitute references in the rewritten stylesheet.

        :param resolve: Produces the text to substitute a reference with; by default the text is the string value of the reference's handle
        :returns: The rewritten stylesheet with all references substituted
        """
        if not self.reference_order:
            return self.css_string
        return self.css_string % tuple(resolve(reference) for reference in self.reference_order)

@dataclass(frozen=True)
class Discovery:
    """What a stylesheet declares, as far as bindings for it are concerned."""
    variables: list[str] # Fixed names of the variables
    identifiers: list[tuple[str, Usage]] # Fixed names of the classes and ids, with their usage

def space_insensitive(token: Token, kinds: tuple[type[Token], ...]) -> bool:
    match token:
        case DelimToken(value=value) if value in COMBINATORS:
            return True
        case _:
            return isinstance(token, kinds)

def normalize(stylesheet: StyleSheet) -> str:
    """Serialize a stylesheet in a form insensitive to formatting.

    Comments are dropped and white-space is collapsed to a single space, or removed where it is insignificant, e.g. around braces, semicolons and combinators. Two stylesheets which differ only in such formatting, normalize to the same text.
    """
    chunks: list[str] = []
    previous: Token | None = None
    spaced = False
    for token in tokens(stylesheet):
        if isinstance(token, WhitespaceToken): # Includes comments
            spaced = True
            continue
        if spaced and previous is not None and not space_insensitive(previous, SPACE_INSENSITIVE_AFTER) and not space_insensitive(token, SPACE_INSENSITIVE_BEFORE):
            chunks.append(' ')
        chunks.append(token.source)
        previous, spaced = token, False
    return join(chunks)

def stylesheet_hash(stylesheet: StyleSheet, path: str | None) -> str:
    """Compute the hash that identifiers of a stylesheet are suffixed with.

    The hash covers the normalized stylesheet (see `normalize`) and the path of its source, so it changes with every change to either, except for changes to formatting.
    """
    return hashlib.md5(f'{path or ""}:{normalize(stylesheet)}'.encode(), usedforsecurity=False).hexdigest()[:HASH_LENGTH]

def rewrite_key(table: Mapping[str, object], occurrence: Occurrence) -> str | None:
    """Find the key of `table` that applies to an occurrence.

    Variables are keyed by their name as written (with the leading `--`), but a key without the `--` is accepted too.
    """
    if occurrence.name in table:
        return occurrence.name
    if occurrence.kind == IdentifierKind.VARIABLE and (bare := occurrence.name.removeprefix('--')) in table:
        return bare
    return None

class Rewriter:
    """The visitor (see `csshash.classifying.Visitor`) that decides what every identifier of a stylesheet is replaced with, and records the decisions into an identifier map.

    An identifier is, in order of precedence:

    1. hashed, if it is in `Options.always_hash`
    2. replaced with the literal or the reference it is rewritten to in `Options.rewrite` (identifiers in `Options.dont_hash` are rewritten to themselves)
    3. left as it is, if it starts with any of `Options.dont_hash_prefixes`
    4. hashed, otherwise
    """
    options: Options
    hash: str
    identifier_mapping: dict[str, Entry]
    reference_order: list[Reference]
    used_prefixes: set[str]
    def __init__(self, options: Options, *, hash: str, original_identifiers: Iterable[str]):
        self.options = options
        self.hash = hash
        self._table = options.rewrite_table
        self._prefixes = sorted(options.dont_hash_prefixes, key=lambda prefix: (len(prefix), prefix)) # Shortest (most general) first
        self._resolver = NameResolver(frozenset(original_identifiers), strict=options.strict_collisions)
        self.identifier_mapping = {}
        self.reference_order = []
        self.used_prefixes = set()
    def __call__(self, occurrence: Occurrence) -> str:
        target = self._resolver.resolve(occurrence.name, location=occurrence.location)
        value, text = self.replacement(occurrence)
        if (entry := self.identifier_mapping.get(target)):
            self.identifier_mapping[target] = Entry(entry.kinds | { occurrence.kind }, entry.value, entry.original)
        else:
            self.identifier_mapping[target] = Entry(frozenset((occurrence.kind,)), value, occurrence.name)
        logger.debug('%s: %s %r -> %r', occurrence.location, occurrence.kind, occurrence.name, value)
        return text
    def replacement(self, occurrence: Occurrence) -> tuple[str | Reference, str]:
        """Decide the replacement of an occurrence.

        :returns: The value for the identifier map, and the text to substitute the identifier with in the stylesheet
        """
        name = occurrence.name
        if name not in self.options.always_hash:
            if (key := rewrite_key(self._table, occurrence)) is not None:
                match self._table[key]:
                    case Reference() as reference:
                        self.reference_order.append(reference)
                        return reference, PLACEHOLDER
                    case str() as literal:
                        if occurrence.kind == IdentifierKind.VARIABLE and not literal.startswith('--'): # A custom property name must retain its leading `--`
                            literal = '--' + literal
                        return literal, literal
            if self.matches_prefix(name):
                return name, name
        hashed = f'{name}_hash_{self.hash}'
        return hashed, hashed
    def matches_prefix(self, name: str) -> bool:
        for prefix in self._prefixes:
            if name.startswith(prefix):
                self.used_prefixes.add(prefix)
                return True
        return False

def transform(css: str, *, path: str | None = None, options: Options | None = None) -> TransformResult:
    """Hash the identifiers of a stylesheet.

    :param css: Source text of the stylesheet
    :param path: Path of the source of the stylesheet; seeds the hash and is reported in errors
    :param options: See `Options`
    :returns: The rewritten stylesheet, with the identifier map and the order of references (see `TransformResult`)
    :raises UnsafeHashingChangeError: if an identifier inside a selector function, or a variable, would be hashed without `Options.allow_potential_accidental_hashing`
    :raises UnusedConfigurationError: if a key of `Options.rewrite`, a name in `Options.dont_hash`, or a prefix in `Options.dont_hash_prefixes` does not match any identifier
    :raises IdentifierCollisionError: if two identifiers map to the same fixed name
    """
    options = options or Options()
    stylesheet = parse_stylesheet(css, location=path)
    hash = stylesheet_hash(stylesheet, path)
    table = options.rewrite_table
    unit = Location(path, 1, 1) # For errors concerning the stylesheet as a whole
    occurrences = iter_identifiers(stylesheet, rewrite=table, allow_potential_accidental_hashing=options.allow_potential_accidental_hashing)
    matched = { occurrence.name: key for occurrence in occurrences if (key := rewrite_key(table, occurrence)) is not None }
    check_newly_hashed_variables(
        (occurrence.name for occurrence in occurrences if occurrence.kind == IdentifierKind.VARIABLE),
        exempt=matched.keys() | options.always_hash | { occurrence.name for occurrence in occurrences if options.covered_by_prefix(occurrence.name) },
        allow_potential_accidental_hashing=options.allow_potential_accidental_hashing,
        location=unit)
    check_unused_rewrites(table.keys() - set(matched.values()), location=unit)
    rewriter = Rewriter(options, hash=hash, original_identifiers=(occurrence.name for occurrence in occurrences))
    map_stylesheet(stylesheet, rewriter, rewrite=table, allow_potential_accidental_hashing=options.allow_potential_accidental_hashing)
    check_unused_prefixes(options.dont_hash_prefixes, rewriter.used_prefixes, location=unit)
    css_string = f'\n/* {path or "<string>"} */\n\n{source(stylesheet).strip()}'
    if rewriter.reference_order:
        css_string = css_string.replace('%', '%%').replace(PLACEHOLDER, '%s')
    logger.info('Hashed %d identifier(s) of %s with %s', len(rewriter.identifier_mapping), path or '<string>', hash)
    return TransformResult(css_string, rewriter.identifier_mapping, tuple(rewriter.reference_order), hash)

def discover(stylesheet: str | StyleSheet, *, strict_collisions: bool = False) -> Discovery:
    """Find the identifiers a stylesheet declares, without rewriting it.

    Identifiers inside selector functions are included, and the same collision checks as with `transform` apply.

    :param stylesheet: Source text of a stylesheet, or a parsed one
    :raises IdentifierCollisionError: if two identifiers map to the same fixed name
    """
    if isinstance(stylesheet, str):
        stylesheet = parse_stylesheet(stylesheet)
    occurrences = iter_identifiers(stylesheet, allow_potential_accidental_hashing=True) # Nothing gets hashed, so nothing can be hashed by accident
    resolver = NameResolver(frozenset(occurrence.name for occurrence in occurrences), strict=strict_collisions)
    variables: set[str] = set()
    kinds: dict[str, set[IdentifierKind]] = {}
    for occurrence in occurrences:
        name = resolver.resolve(occurrence.name, location=occurrence.location)
        if occurrence.kind == IdentifierKind.VARIABLE:
            variables.add(name)
        else:
            kinds.setdefault(name, set()).add(occurrence.kind)
    return Discovery(sorted(variables), sorted((name, cast(Usage, Usage.of(used_as))) for name, used_as in kinds.items()))
