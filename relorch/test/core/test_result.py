"""Tests for relorch.core.result module."""

import pytest

from relorch.core.result import Err, Ok, Result


def test_equality_and_repr() -> None:
    assert Ok(1) == Ok(1)
    assert Ok(1) != Err(1)
    assert repr(Ok("v")) == "Ok('v')"
    assert repr(Err("boom")) == "Err('boom')"


def test_isinstance_narrowing() -> None:
    results: list[Result[int, str]] = [Ok(1), Err("x")]
    assert [isinstance(r, Ok) for r in results] == [True, False]
    assert [isinstance(r, Err) for r in results] == [False, True]


def test_pattern_matching() -> None:
    match Ok("v"):
        case Ok(value):
            assert value == "v"
        case Err(_):
            pytest.fail("expected Ok")
