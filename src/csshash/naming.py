"""Derivation of binding-safe names from CSS identifiers.

CSS identifiers routinely contain hyphens (`nav-bar`, `--main-color`) which are not legal in names of most host languages. Each identifier is given a "fixed" name -- the leading `--` of a custom property stripped and every `-` replaced with `_` -- which consumers use as the key for the identifier (see `IdentifierMap`). Since fixing is not injective (`nav-bar` and `nav_bar` fix to the same name), every fixed name is checked against collisions, so two distinct identifiers are never merged under one name.
"""

from .utils import CompileError, Location

from collections.abc import Container
import logging

logger = logging.getLogger(__name__)

class IdentifierCollisionError(CompileError):
    """Class of errors raised when fixing a name would make two distinct identifiers indistinguishable."""
    identifier: str
    fixed_identifier: str
    def __init__(self, message: str, *, identifier: str, fixed_identifier: str, location: Location | None = None):
        super().__init__(message, location=location)
        self.identifier = identifier
        self.fixed_identifier = fixed_identifier

class ExistingIdentifierCollisionError(IdentifierCollisionError):
    """Raised when the fixed name of an identifier is itself an identifier in the stylesheet, e.g. `foo-bar` where `foo_bar` is also used."""
    def __init__(self, *, identifier: str, fixed_identifier: str, location: Location | None = None):
        super().__init__(f"Unsafe collision of names. Cannot rename '{identifier}' to '{fixed_identifier}' because '{fixed_identifier}' already exists", identifier=identifier, fixed_identifier=fixed_identifier, location=location)

class MintedIdentifierCollisionError(IdentifierCollisionError):
    """Raised when two different identifiers fix to the same name, e.g. `--foo-bar` and `foo-bar`."""
    previous_identifier: str
    def __init__(self, *, previous_identifier: str, identifier: str, fixed_identifier: str, location: Location | None = None):
        super().__init__(f"Unsafe collisions of names. Two different unsafe names map to the same fixed name which might lead to unintended results. Both '{previous_identifier}' and '{identifier}' map to '{fixed_identifier}'", identifier=identifier, fixed_identifier=fixed_identifier, location=location)
        self.previous_identifier = previous_identifier

def fix_identifier(identifier: str) -> str:
    """Strip the leading `--` of a custom property name, if any, and replace every `-` with `_`.

    E.g. `--main-color` becomes `main_color`.
    """
    return identifier.removeprefix('--').replace('-', '_')

class NameResolver:
    """Resolver of fixed names for identifiers of one stylesheet, raising on collisions.

    An identifier without hyphens is its own fixed name and, by default, isn't checked at all; this means a hyphen-less identifier is never itself reported as colliding with the fixed name of another identifier (although the _other_ identifier will be, when resolved, as its fixed name exists verbatim in the stylesheet). Pass `strict=True` to record and check hyphen-less identifiers like any other.
    """
    _original_identifiers: Container[str]
    _fixed_to_original: dict[str, str]
    strict: bool
    def __init__(self, original_identifiers: Container[str], *, strict: bool = False):
        """
        :param original_identifiers: Every identifier (as written, custom properties with the leading `--`) featured by the stylesheet
        :param strict: Whether hyphen-less identifiers take part in the collision checks
        """
        self._original_identifiers = original_identifiers
        self._fixed_to_original = {}
        self.strict = strict
    def resolve(self, identifier: str, *, location: Location | None = None) -> str:
        """Resolve the fixed name of an identifier.

        Resolving the same identifier repeatedly yields the same name.

        :raises ExistingIdentifierCollisionError: if the fixed name is a different identifier featured by the stylesheet
        :raises MintedIdentifierCollisionError: if a different identifier was previously resolved to the same fixed name
        """
        if '-' not in identifier:
            if self.strict:
                self._claim(identifier, identifier, location=location)
            return identifier
        fixed_identifier = fix_identifier(identifier)
        if fixed_identifier in self._original_identifiers:
            raise ExistingIdentifierCollisionError(identifier=identifier, fixed_identifier=fixed_identifier, location=location)
        self._claim(identifier, fixed_identifier, location=location)
        return fixed_identifier
    def _claim(self, identifier: str, fixed_identifier: str, *, location: Location | None) -> None:
        previous_identifier = self._fixed_to_original.setdefault(fixed_identifier, identifier)
        if previous_identifier != identifier:
            raise MintedIdentifierCollisionError(previous_identifier=previous_identifier, identifier=identifier, fixed_identifier=fixed_identifier, location=location)
        logger.debug('Resolved %r to %r', identifier, fixed_identifier)
