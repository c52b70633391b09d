"""Tests for the policy checks run around rewriting."""

import pytest

from csshash.classifying import UnsafeHashingChangeError, Usage
from csshash.utils import Location
from csshash.validation import check_disambiguation, check_newly_hashed_variables, check_unused_prefixes, check_unused_rewrites, DisambiguationCollisionError, UnusedConfigurationError

def test_unused_rewrites():
    check_unused_rewrites(set())
    with pytest.raises(UnusedConfigurationError) as excinfo:
        check_unused_rewrites({ 'b', 'a' })
    assert str(excinfo.value) == 'Unused keys: "a", "b"'

def test_unused_prefixes():
    check_unused_prefixes([ 'js-' ], { 'js-' })
    with pytest.raises(UnusedConfigurationError) as excinfo:
        check_unused_prefixes([ 'js-', 'qa-' ], { 'js-' }, location=Location('a.css', 1, 1))
    assert excinfo.value.unused == { 'qa-' }
    assert excinfo.value.location == Location('a.css', 1, 1)

def test_newly_hashed_variables():
    assert check_newly_hashed_variables([ '--a' ], exempt={ '--a' }, allow_potential_accidental_hashing=False) == set()
    with pytest.raises(UnsafeHashingChangeError) as excinfo:
        check_newly_hashed_variables([ '--a', '--b', '--b' ], exempt={ '--a' }, allow_potential_accidental_hashing=False)
    assert excinfo.value.identifiers == { '--b' }

def test_newly_hashed_variables_when_permitted(caplog):
    caplog.set_level('DEBUG', logger='csshash')
    assert check_newly_hashed_variables([ '--a', '--b' ], exempt=(), allow_potential_accidental_hashing=True) == { '--a', '--b' }
    assert 'Hashing newly observed variables: "--a", "--b"' in caplog.messages

def test_disambiguation():
    check_disambiguation([ ('x', Usage.BOTH), ('y', Usage.ONLY_CLASS), ('x_idx', Usage.ONLY_ID) ])
    with pytest.raises(DisambiguationCollisionError) as excinfo:
        check_disambiguation([ ('x', Usage.BOTH), ('x_class', Usage.ONLY_ID), ('y', Usage.ONLY_CLASS), ('y_id', Usage.ONLY_ID) ])
    assert excinfo.value.conflicts == { 'x_class' }
    assert 'rename the following identifiers: "x_class"' in str(excinfo.value)
