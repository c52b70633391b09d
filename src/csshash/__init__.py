"""Content-addressed hashing of the class, id and custom property names of CSS stylesheets.

The main entry point is `csshash.rewriting.transform`, which renames every identifier of a stylesheet by suffixing it with a hash of the stylesheet, making the names of separately authored stylesheets collision-free. Inline CSS embedding values of the host application is handled by `csshash.anonymous`, and what may or may not be hashed is configured with `csshash.config.Options`.

Parsing of CSS is done with the `csspring` package.
"""

from .anonymous import AnonymousDeclarations, AnonymousStylesheet, AnonymousVariable, InterpolationError, VariableMinter
from .classifying import IdentifierKind, Occurrence, UnsafeHashingChangeError, Usage
from .config import load_options, Options, Reference
from .naming import ExistingIdentifierCollisionError, fix_identifier, IdentifierCollisionError, MintedIdentifierCollisionError, NameResolver
from .rewriting import discover, Discovery, Entry, transform, TransformResult
from .utils import CompileError, Location
from .validation import check_disambiguation, DisambiguationCollisionError, UnusedConfigurationError

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
