"""Tests for classification of identifiers and in-place rewriting of the tokens spelling them."""

import pytest

from csspring.syntax.parsing import parse_stylesheet, source
from csspring.syntax.tokenizing import ColonToken, DelimToken, HashToken, IdentToken

from csshash.classifying import classify, IdentifierKind, iter_identifiers, Lookback, lookback, map_stylesheet, Occurrence, renamed, serialize_identifier, UnsafeHashingChangeError, Usage
from csshash.utils import Location

def summary(css, **kwargs):
    return [ (occurrence.kind, occurrence.name, occurrence.definition) for occurrence in iter_identifiers(parse_stylesheet(css), **kwargs) ]

def test_lookback():
    assert lookback(DelimToken(value='.', source='.')) == Lookback.DOT
    assert lookback(ColonToken(source=':')) == Lookback.COLON
    assert lookback(IdentToken(value='a', source='a')) == Lookback.OTHER
    assert lookback(DelimToken(value='>', source='>')) == Lookback.OTHER

def test_classify():
    ident = IdentToken(value='foo', source='foo')
    assert classify(Lookback.DOT, ident) == IdentifierKind.CLASS
    assert classify(Lookback.OTHER, ident) is None
    assert classify(Lookback.COLON, ident) is None # A pseudo-class, e.g. `:hover`
    for state in Lookback:
        assert classify(state, HashToken(value='main', source='#main')) == IdentifierKind.ID

def test_usage_of_kinds():
    assert Usage.of({ IdentifierKind.CLASS }) == Usage.ONLY_CLASS
    assert Usage.of({ IdentifierKind.ID }) == Usage.ONLY_ID
    assert Usage.of({ IdentifierKind.CLASS, IdentifierKind.ID, IdentifierKind.VARIABLE }) == Usage.BOTH
    assert Usage.of({ IdentifierKind.VARIABLE }) is None

def test_selectors_and_variables_in_document_order():
    css = '.a.b #c > d:hover, .e:is(.f, #g) { --v: var(--w, var(--x)); color: red }'
    assert summary(css, allow_potential_accidental_hashing=True) == [
        (IdentifierKind.CLASS, 'a', False),
        (IdentifierKind.CLASS, 'b', False),
        (IdentifierKind.ID, 'c', False),
        (IdentifierKind.CLASS, 'e', False),
        (IdentifierKind.CLASS, 'f', False),
        (IdentifierKind.ID, 'g', False),
        (IdentifierKind.VARIABLE, '--v', True),
        (IdentifierKind.VARIABLE, '--w', False),
        (IdentifierKind.VARIABLE, '--x', False),
    ]

def test_rules_nested_in_at_rules():
    css = '@media (min-width: 100px) { .a { color: var(--x) } }'
    assert summary(css, allow_potential_accidental_hashing=True) == [ (IdentifierKind.CLASS, 'a', False), (IdentifierKind.VARIABLE, '--x', False) ]

def test_only_first_argument_of_var_is_a_variable():
    assert summary('.a { color: var(--x, --y) }') == [ (IdentifierKind.CLASS, 'a', False), (IdentifierKind.VARIABLE, '--x', False) ]

def test_values_are_not_identifiers():
    assert summary('.a { color: red; background: url(foo.png) #fff }') == [ (IdentifierKind.CLASS, 'a', False) ]

def test_selector_function_requires_permission():
    with pytest.raises(UnsafeHashingChangeError) as excinfo:
        iter_identifiers(parse_stylesheet('.a:not(.b) {}'))
    assert excinfo.value.identifiers == { 'b' }
    assert excinfo.value.location == Location(None, 1, 9)
    assert 'allow_potential_accidental_hashing' in str(excinfo.value)

def test_nested_selector_functions_require_permission():
    with pytest.raises(UnsafeHashingChangeError) as excinfo:
        iter_identifiers(parse_stylesheet(':NOT(:is(#a)) {}'))
    assert excinfo.value.identifiers == { 'a' }

def test_rewritten_identifiers_are_permitted_in_selector_functions():
    assert summary('.a:has(.b, #c) {}', rewrite={ 'b', 'c' }) == [
        (IdentifierKind.CLASS, 'a', False),
        (IdentifierKind.CLASS, 'b', False),
        (IdentifierKind.ID, 'c', False),
    ]

def test_other_functional_pseudo_classes_are_not_selectors():
    assert summary('li:nth-child(2n + 1) {}') == []

def test_occurrence_location():
    occurrence, = iter_identifiers(parse_stylesheet('\n\n  .foo {}', location='a.css'))
    assert occurrence == Occurrence(IdentifierKind.CLASS, 'foo')
    assert occurrence.location == Location('a.css', 3, 4)
    assert str(occurrence.location) == 'a.css:3:4'

def test_map_stylesheet_rewrites_in_place():
    stylesheet = parse_stylesheet('.a #b { --c: 1px; width: var(--c) }')
    assert map_stylesheet(stylesheet, lambda occurrence: occurrence.name.upper()) is stylesheet
    assert source(stylesheet) == '.A #B { --C: 1px; width: var(--C) }'

def test_iter_identifiers_leaves_stylesheet_unchanged():
    css = '/* x */ .a { --b: 1 }'
    stylesheet = parse_stylesheet(css)
    iter_identifiers(stylesheet)
    assert source(stylesheet) == css

def test_renamed():
    token = HashToken(value='main', source='#main')
    assert renamed(token, 'main') is token
    assert renamed(token, 'main_hash_0123456789').source == '#main_hash_0123456789'
    assert renamed(IdentToken(value='a', source='a'), 'a:b').source == 'a\\:b'

def test_serialize_identifier():
    assert serialize_identifier('nav-bar_2') == 'nav-bar_2'
    assert serialize_identifier('--x') == '--x'
    assert serialize_identifier('a.b') == 'a\\.b'
    assert serialize_identifier('ünï') == 'ünï'
