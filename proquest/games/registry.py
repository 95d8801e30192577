"""
Game Registry - Which mini-games can gate a task.

Every variant satisfies the GameEngine contract. The registry also
carries the preview information shown before a game is picked.
Variants whose rules live elsewhere (arcade, strategy board game) are
added with register_variant().
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable

from .base import Difficulty, GameEngine
from .grid import HeuristicGridGame
from .matching import TimedMatchingGame

GameFactory = Callable[..., GameEngine]


@dataclass
class GameVariant:
    """A selectable mini-game."""
    name: str
    title: str
    factory: GameFactory
    description: str = ""
    difficulties: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)
    uses_ledger: bool = False  # factory accepts a best-score ledger
    metadata: dict[str, str] = field(default_factory=dict)


class UnknownVariantError(KeyError):
    """Raised when no variant is registered under a name."""


class GameRegistry:
    """
    Name -> GameVariant mapping.

    Usage:
        registry = GameRegistry.with_defaults()
        game = registry.create("grid", difficulty="hard", scheduler=scheduler)
    """

    def __init__(self):
        self._variants: dict[str, GameVariant] = {}

    @classmethod
    def with_defaults(cls) -> GameRegistry:
        registry = cls()
        registry.register_variant(GameVariant(
            name="grid",
            title="Tic Tac Toe",
            description="Get three in a row before the computer does",
            factory=HeuristicGridGame,
        ))
        registry.register_variant(GameVariant(
            name="matching",
            title="Memory Match",
            description="Find every pair of cards before time runs out",
            factory=TimedMatchingGame,
            uses_ledger=True,
        ))
        return registry

    def register_variant(self, variant: GameVariant):
        self._variants[variant.name] = variant

    def get_variant(self, name: str) -> GameVariant:
        try:
            return self._variants[name]
        except KeyError:
            raise UnknownVariantError(name) from None

    def list_variants(self) -> list[GameVariant]:
        return list(self._variants.values())

    def __contains__(self, name: str) -> bool:
        return name in self._variants

    def create(self, name: str, difficulty: Difficulty | str = Difficulty.MEDIUM, **kwargs) -> GameEngine:
        """Construct a fresh game instance of the named variant."""
        variant = self.get_variant(name)
        difficulty = Difficulty.parse(difficulty)
        ledger = kwargs.pop("ledger", None)
        if variant.uses_ledger and ledger is not None:
            kwargs["ledger"] = ledger
        if difficulty not in variant.difficulties:
            raise ValueError(f"{variant.title} does not support {difficulty.value} difficulty")
        return variant.factory(difficulty, **kwargs)
