"""Tests for the helpers shared by the rest of the package."""

from csspring.syntax.parsing import parse_stylesheet, tokens

from csshash.utils import CompileError, intersperse, locate, Location, quoted

def test_intersperse():
    assert list(intersperse('a', 'b', 'c', separator=', ')) == [ 'a', ', ', 'b', ', ', 'c' ]
    assert list(intersperse(separator=', ')) == []

def test_quoted():
    assert quoted({ '--foo', '--bar' }) == '"--bar", "--foo"'

def test_compile_error_location():
    assert str(CompileError('Oops', location=Location('a.css', 3, 7))) == 'a.css:3:7: Oops'
    assert str(CompileError('Oops')) == 'Oops'
    assert str(Location(None, 1, 1)) == '<string>:1:1'

def test_locate():
    stylesheet = parse_stylesheet('.a {\n  color: red;\n}', location='a.css')
    locations = locate(stylesheet, stylesheet.location)
    assert [ (token.source, locations[id(token)]) for token in tokens(stylesheet) if token.source.strip() ] == [
        ('.', Location('a.css', 1, 1)),
        ('a', Location('a.css', 1, 2)),
        ('{', Location('a.css', 1, 4)),
        ('color', Location('a.css', 2, 3)),
        (':', Location('a.css', 2, 8)),
        ('red', Location('a.css', 2, 10)),
        (';', Location('a.css', 2, 13)),
        ('}', Location('a.css', 3, 1)),
    ]
