"""Policy checks run around the rewriting of a stylesheet.

The checks guard against two kinds of silent mistakes: configuration that no longer matches anything in the stylesheet (e.g. a typo'd or stale `rewrite` key), and identifiers which were never hashed before but would be hashed now, changing the names an application may depend on.
"""

from .classifying import UnsafeHashingChangeError, Usage
from .utils import CompileError, Location, quoted

from collections.abc import Collection, Container, Iterable
import logging

logger = logging.getLogger(__name__)

class UnusedConfigurationError(CompileError):
    """Class of errors raised when a `rewrite` key or a `dont_hash_prefixes` entry did not match any identifier in the stylesheet."""
    unused: frozenset[str]
    def __init__(self, description: str, unused: Iterable[str], *, location: Location | None = None):
        self.unused = frozenset(unused)
        super().__init__(f'Unused {description}: {quoted(self.unused)}', location=location)

class DisambiguationCollisionError(CompileError):
    """Class of errors raised when the names minted for disambiguating an identifier used both as a class and an id (`<name>_class` and `<name>_id`) coincide with identifiers that already exist."""
    conflicts: frozenset[str]
    def __init__(self, conflicts: Iterable[str]):
        self.conflicts = frozenset(conflicts)
        super().__init__(f'Collision between identifiers! This occurs when a disambiguated identifier matches an existing identifier. To resolve this, rename the following identifiers: {quoted(self.conflicts)}.')

def check_unused_rewrites(unused: Collection[str], *, location: Location | None = None) -> None:
    """Fail if any `rewrite` (or `dont_hash`) key was not exercised by the stylesheet.

    :param unused: The keys remaining after removing every key matched during traversal
    :raises UnusedConfigurationError: if `unused` is not empty
    """
    if unused:
        raise UnusedConfigurationError('keys', unused, location=location)

def check_unused_prefixes(prefixes: Iterable[str], used: Container[str], *, location: Location | None = None) -> None:
    """Fail if any of the configured `dont_hash_prefixes` did not match any identifier.

    :raises UnusedConfigurationError: if a prefix in `prefixes` is not in `used`
    """
    if (unused := [prefix for prefix in prefixes if prefix not in used]):
        raise UnusedConfigurationError('prefixes', unused, location=location)

def check_newly_hashed_variables(variables: Iterable[str], *, exempt: Container[str], allow_potential_accidental_hashing: bool, location: Location | None = None) -> frozenset[str]:
    """Find custom properties that will be hashed without having been explicitly configured.

    :param variables: Every custom property name (with the leading `--`) observed in the stylesheet
    :param exempt: Names that are known to the configuration (rewritten, not hashed, or hashed unconditionally)
    :param allow_potential_accidental_hashing: When true, newly hashed variables are merely logged
    :returns: The newly hashed variables
    :raises UnsafeHashingChangeError: if there are newly hashed variables and the permissive mode is off
    """
    newly_hashed = frozenset(variable for variable in variables if variable not in exempt)
    if newly_hashed:
        if not allow_potential_accidental_hashing:
            raise UnsafeHashingChangeError(newly_hashed, location=location)
        logger.debug('Hashing newly observed variables: %s', quoted(newly_hashed))
    return newly_hashed

def check_disambiguation(identifiers: Iterable[tuple[str, Usage]]) -> None:
    """Check that names minted for identifiers used both as class and id do not collide with existing identifiers.

    Consumers that generate bindings for an identifier of `Usage.BOTH` emit `<name>_class` and `<name>_id` in its place; these must not shadow identifiers of the same name.

    :param identifiers: Pairs of (sanitized) identifier and its usage, as produced by `discover`
    :raises DisambiguationCollisionError: on collision
    """
    identifiers = tuple(identifiers)
    existing = { name for name, _ in identifiers }
    minted = { name + suffix for name, usage in identifiers if usage == Usage.BOTH for suffix in ('_id', '_class') }
    if (conflicts := existing & minted):
        raise DisambiguationCollisionError(conflicts)
