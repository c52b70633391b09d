"""Set of constructs to aid the rest of the package: the base error type, source locations of tokens, and a few helpers for formatting identifiers in messages."""

from csspring.syntax.parsing import Product, tokens

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar('T')

def intersperse(*items: T, separator: T) -> Iterable[T]:
    """Yield items with a separator yielded between each item.

    E.g. `intersperse("foo", "bar", "baz", separator=", ")` will yield "foo", ", ", "bar", ", ", then "baz". Yields nothing for no items.

    :param items: A sequence (items are assumed to be of the same type or share a super-type)
    :param separator: A value to yield between yielding each item in the sequence
    """
    it = iter(items)
    try:
        yield next(it)
    except StopIteration:
        return
    for item in it:
        yield separator
        yield item

def join(iterable: Iterable[str]) -> str:
    """Join a sequence into a string."""
    return ''.join(iterable)

def quoted(names: Iterable[str]) -> str:
    """Format identifiers for an error message, sorted, quoted and comma-separated (e.g. `"--bar", "--foo"`)."""
    return join(intersperse(*(f'"{name}"' for name in sorted(names)), separator=', '))

@dataclass(frozen=True, slots=True)
class Location:
    """A position in CSS source text, identifying where an identifier was found.

    Lines and columns are 1-based, the column counting code points (as the tokenizer sees them) from the start of the line.
    """
    path: str | None
    line: int
    column: int
    def __str__(self) -> str:
        return f'{self.path or "<string>"}:{self.line}:{self.column}'

class CompileError(RuntimeError):
    """A [catch-all] class of errors that abort compilation of a stylesheet.

    Every such error is fatal to the compilation unit it occurred in -- there is no partial output -- and is resolved by changing either the source text or the configuration, then compiling again.
    """
    location: Location | None
    def __init__(self, message: str, *, location: Location | None = None):
        super().__init__(f'{location}: {message}' if location else message)
        self.location = location

def locate(product: Product, path: str | None = None) -> Mapping[int, Location]:
    """Compute the location of every token in a parse product.

    The parser does not record positions, but because every token preserves its exact source text (see the `source` attribute on `Token`), positions can be recovered by accumulating the source text of tokens in document order.

    :param product: A parse product, e.g. a `StyleSheet`
    :param path: The path to report in the locations
    :returns: A mapping of token object identity (`id`) to location; identity is used because tokens with equal value and source text at different positions compare equal
    """
    result: dict[int, Location] = {}
    line, column = 1, 1
    for token in tokens(product):
        result[id(token)] = Location(path, line, column)
        text = token.source
        if (newlines := text.count('\n')):
            line += newlines
            column = len(text) - text.rindex('\n')
        else:
            column += len(text)
    return result
