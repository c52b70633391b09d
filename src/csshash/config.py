"""Configuration of the hashing of a stylesheet.

Options are normally constructed by the build tooling driving compilation, but can also be loaded from the `[tool.csshash]` table of a `pyproject.toml` file (see `load_options`), e.g.:

```toml
[tool.csshash]
dont_hash = ["--brand-color"]
dont_hash_prefixes = ["js-"]
rewrite = { "legacy-button" = "btn" }
allow_potential_accidental_hashing = false
```
"""

from collections.abc import Mapping
from pathlib import Path
import tomllib
from types import MappingProxyType
from typing import Any, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from .anonymous import AnonymousDeclarations, AnonymousStylesheet

class Reference:
    """An opaque, caller-supplied replacement for an identifier.

    References are never inspected: rewriting replaces every identifier rewritten to a reference with a positional placeholder, and records the reference (in order) so the caller can substitute it later (see `TransformResult.render`). The referenced value is typically an expression of whatever host language bindings are generated for.
    """
    __slots__ = ('handle',)
    handle: Any
    def __init__(self, handle: Any):
        self.handle = handle
    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.handle!r})'
    def __str__(self) -> str:
        return str(self.handle)

class Options(BaseModel):
    """Options controlling which identifiers of a stylesheet are hashed."""
    model_config = ConfigDict(frozen=True, extra='forbid', arbitrary_types_allowed=True)

    rewrite: Mapping[str, str | Reference] = Field(default_factory=dict, validate_default=True, description="Identifiers to replace with a literal name (left unhashed) or a `Reference`.")
    dont_hash: frozenset[str] = Field(frozenset(), description="Identifiers to leave as they are; shorthand for rewriting a name to itself.")
    dont_hash_prefixes: frozenset[str] = Field(frozenset(), description="Identifiers starting with any of these are left as they are.")
    always_hash: frozenset[str] = Field(frozenset(), description="Identifiers hashed regardless of any of the above, e.g. those synthesized for anonymous declarations.")
    allow_potential_accidental_hashing: bool = Field(False, description="Hash identifiers inside selector functions and newly observed variables instead of failing.")
    strict_collisions: bool = Field(False, description="Also check identifiers without hyphens for collisions of their fixed names.")

    @field_validator('rewrite')
    @classmethod
    def freeze_rewrite(cls, rewrite: Mapping[str, str | Reference]) -> Mapping[str, str | Reference]:
        return MappingProxyType(dict(rewrite)) # Read-only once validated

    @model_validator(mode='after')
    def check_rewrite_overlap(self) -> 'Options':
        if (overlap := self.dont_hash.intersection(self.rewrite)):
            raise ValueError(f"Identifiers are both rewritten and not hashed: {', '.join(sorted(overlap))}")
        return self

    @property
    def rewrite_table(self) -> Mapping[str, str | Reference]:
        """The `rewrite` mapping with every `dont_hash` identifier mapped to itself."""
        return { **{ name: name for name in self.dont_hash }, **self.rewrite }

    def covered_by_prefix(self, name: str) -> bool:
        """Whether a name starts with any of `dont_hash_prefixes`."""
        return name.startswith(tuple(self.dont_hash_prefixes))

    def merged_with(self, *anonymous: 'AnonymousDeclarations | AnonymousStylesheet') -> 'Options':
        """Merge the policy inferred for anonymous declarations/stylesheets into these options.

        Names synthesized for anonymous declarations are hashed unconditionally; variables the declarations reference without defining are assumed to be defined elsewhere and are left unhashed, unless the options already say otherwise about them, be it through any of the names they list (a variable may be listed without its leading `--`, see `csshash.rewriting.rewrite_key`) or a matching prefix.
        """
        always_hash = set(self.always_hash)
        inferred: set[str] = set()
        for item in anonymous:
            always_hash |= item.always_hash()
            inferred.update(getattr(item, 'inferred_do_not_hash', ()))
        configured = set(self.rewrite) | self.dont_hash | always_hash
        def is_configured(name: str) -> bool:
            return name in configured or name.removeprefix('--') in configured or self.covered_by_prefix(name)
        dont_hash = self.dont_hash | { name for name in inferred if not is_configured(name) }
        return self.model_copy(update=dict(always_hash=frozenset(always_hash), dont_hash=frozenset(dont_hash)))

def load_options(path: str | Path, **overrides: Any) -> Options:
    """Load options from the `[tool.csshash]` table of a TOML file (normally `pyproject.toml`).

    A missing table yields default options. `Reference` values cannot be expressed in TOML and can only be passed in `overrides`.

    :param path: The TOML file
    :param overrides: Options taking precedence over those in the file
    :raises pydantic.ValidationError: if the table does not describe valid options
    """
    with open(path, 'rb') as file:
        document = tomllib.load(file)
    table = document.get('tool', {}).get('csshash', {})
    return Options.model_validate({ **table, **overrides })
