"""Unit tests for special token policies."""

import logging

import pytest

from minbpe.errors import SpecialTokenInTextError, StrategyError
from minbpe.strategy import (
    AllowAllStrategy,
    AllowCustomStrategy,
    AllowNoneRaiseStrategy,
    AllowNoneStrategy,
    get_strategy,
    list_strategies,
    resolve_strategy,
)

SPECIALS = {"<|endoftext|>": 1000, "<|fim|>": 1001}


# Policy parsing
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "policy, cls",
    [
        ("all", AllowAllStrategy),
        ("none", AllowNoneStrategy),
        ("none_raise", AllowNoneRaiseStrategy),
        ("set:<|fim|>", AllowCustomStrategy),
    ],
)
def test_get_strategy(policy, cls):
    assert isinstance(get_strategy(policy), cls)


def test_get_strategy_default_is_none_raise():
    assert isinstance(get_strategy(), AllowNoneRaiseStrategy)


def test_set_policy_parses_literals():
    strategy = get_strategy("set:<|endoftext|>,<|fim|>")
    assert strategy.allowed_subset == {"<|endoftext|>", "<|fim|>"}


@pytest.mark.parametrize("policy", ["some", "none-raise", "", "SET:<|fim|>"])
def test_unknown_policy_raises(policy):
    with pytest.raises(StrategyError) as exc_info:
        get_strategy(policy)
    assert exc_info.value.invalid_name == policy


def test_resolve_strategy_passes_objects_through():
    strategy = AllowAllStrategy()
    assert resolve_strategy(strategy) is strategy


def test_resolve_strategy_rejects_other_types():
    with pytest.raises(StrategyError):
        resolve_strategy(42)


def test_list_strategies():
    assert list_strategies() == ["all", "none", "none_raise", "set:<tokens>"]


# Strategy behavior
# ---------------------------------------------------------------------------


def test_allow_all_returns_every_special():
    assert AllowAllStrategy().handle("text", SPECIALS) == SPECIALS


def test_allow_all_warns_when_nothing_registered(caplog):
    with caplog.at_level(logging.WARNING, logger="minbpe.strategy"):
        assert AllowAllStrategy().handle("text", {}) == {}
    assert "no special tokens registered" in caplog.text


def test_none_raise_passes_clean_text():
    assert AllowNoneRaiseStrategy().handle("plain text", SPECIALS) == {}


def test_none_raise_reports_found_tokens():
    with pytest.raises(SpecialTokenInTextError) as exc_info:
        AllowNoneRaiseStrategy().handle("a <|fim|> b", SPECIALS)
    assert exc_info.value.found_tokens == {"<|fim|>"}


def test_none_warns_and_allows_nothing(caplog):
    with caplog.at_level(logging.WARNING, logger="minbpe.strategy"):
        assert AllowNoneStrategy().handle("a <|fim|> b", SPECIALS) == {}
    assert "plain text" in caplog.text


def test_custom_keeps_registered_subset():
    strategy = AllowCustomStrategy({"<|fim|>", "<|unregistered|>"})
    assert strategy.handle("text", SPECIALS) == {"<|fim|>": 1001}
