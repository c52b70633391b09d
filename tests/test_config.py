"""Tests for hashing options and their loading from `pyproject.toml`."""

import pytest
from pydantic import ValidationError

from csshash.config import load_options, Options, Reference

def test_defaults():
    options = Options()
    assert options.rewrite == {}
    assert options.dont_hash == options.dont_hash_prefixes == options.always_hash == frozenset()
    assert not options.allow_potential_accidental_hashing
    assert not options.strict_collisions

def test_rewrite_table():
    reference = Reference('x')
    options = Options(rewrite={ 'a': 'b', 'c': reference }, dont_hash={ 'd' })
    assert options.rewrite_table == { 'a': 'b', 'c': reference, 'd': 'd' }

def test_rewritten_and_not_hashed():
    with pytest.raises(ValidationError, match='both rewritten and not hashed: a'):
        Options(rewrite={ 'a': 'b' }, dont_hash={ 'a' })

def test_unknown_option():
    with pytest.raises(ValidationError):
        Options(dont_hash_prefix=[ 'js-' ])

def test_options_are_frozen():
    with pytest.raises(ValidationError):
        Options().allow_potential_accidental_hashing = True

def test_reference():
    reference = Reference(['theme', 'primary'])
    assert repr(reference) == "Reference(['theme', 'primary'])"
    assert str(Reference('theme.primary')) == 'theme.primary'

def test_load_options(tmp_path):
    path = tmp_path / 'pyproject.toml'
    path.write_text('''
[project]
name = "app"

[tool.csshash]
dont_hash = ["--brand-color", "--brand-color"]
dont_hash_prefixes = ["js-"]
rewrite = { "legacy-button" = "btn" }
allow_potential_accidental_hashing = true
''')
    options = load_options(path)
    assert options.dont_hash == { '--brand-color' }
    assert options.dont_hash_prefixes == { 'js-' }
    assert options.rewrite == { 'legacy-button': 'btn' }
    assert options.allow_potential_accidental_hashing

def test_load_options_overrides(tmp_path):
    path = tmp_path / 'pyproject.toml'
    path.write_text('[tool.csshash]\nallow_potential_accidental_hashing = true\n')
    reference = Reference('theme.button')
    options = load_options(path, allow_potential_accidental_hashing=False, rewrite={ 'button': reference })
    assert not options.allow_potential_accidental_hashing
    assert options.rewrite['button'] is reference

def test_load_options_without_table(tmp_path):
    path = tmp_path / 'pyproject.toml'
    path.write_text('[project]\nname = "app"\n')
    assert load_options(path) == Options()

def test_load_invalid_options(tmp_path):
    path = tmp_path / 'pyproject.toml'
    path.write_text('[tool.csshash]\ndont_hash = "--brand-color"\n')
    with pytest.raises(ValidationError):
        load_options(path)

def test_rewrite_is_read_only():
    options = Options(rewrite={ 'a': 'b' })
    with pytest.raises(TypeError):
        options.rewrite['c'] = 'd'
    assert Options().rewrite == {}
    with pytest.raises(TypeError):
        Options().rewrite['c'] = 'd'
