"""Ordered first-match rule chains used by the control and trigger FSMs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar, Union

S = TypeVar("S")


@dataclass(frozen=True)
class Rule(Generic[S]):
    name: str
    when: Callable[..., bool]
    then: Union[S, Callable[..., S]]

    def resolve(self, *ctx: Any) -> S:
        if callable(self.then):
            return self.then(*ctx)
        return self.then


@dataclass(frozen=True)
class Decision(Generic[S]):
    rule: str
    state: S


def first_match(rules: Sequence[Rule[S]], *ctx: Any, default: Decision[S]) -> Decision[S]:
    for rule in rules:
        if rule.when(*ctx):
            return Decision(rule=rule.name, state=rule.resolve(*ctx))
    return default


def rule_names(rules: Sequence[Rule[S]]) -> list[str]:
    return [r.name for r in rules]
