"""Category closures over the subtype ("subclass of") hierarchy.

Both directions are worklist expansions over an in-memory index of the
(child, parent) pairs. The visited set only grows and the relation is
finite, so cycles in the hierarchy cannot make an expansion loop.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass
class SubtypeHierarchy:
    children: dict[int, set[int]] = field(default_factory=lambda: defaultdict(set))
    parents: dict[int, set[int]] = field(default_factory=lambda: defaultdict(set))
    _ancestor_cache: dict[tuple[int, frozenset[int]], frozenset[int]] = field(
        default_factory=dict, repr=False
    )

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, int]]) -> SubtypeHierarchy:
        h = cls()
        for child, parent in pairs:
            h.add(child, parent)
        return h

    def add(self, child: int, parent: int) -> None:
        self.children[parent].add(child)
        self.parents[child].add(parent)
        self._ancestor_cache.clear()

    def __len__(self) -> int:
        return sum(len(c) for c in self.children.values())

    def descendants(self, category: int) -> frozenset[int]:
        """`category` plus every type that is (transitively) a subclass of it."""
        seen = {category}
        todo = [category]
        while todo:
            cur = todo.pop()
            for child in self.children.get(cur, ()):
                if child not in seen:
                    seen.add(child)
                    todo.append(child)
        return frozenset(seen)

    def type_ancestors(self, nature: int, banned: frozenset[int] = frozenset()) -> frozenset[int]:
        """`nature` plus its (transitive) parents, never entering a banned id.

        A banned nature yields the empty set: expansion cannot go through it.
        """
        if nature in banned:
            return frozenset()
        key = (nature, banned)
        cached = self._ancestor_cache.get(key)
        if cached is not None:
            return cached
        seen = {nature}
        todo = [nature]
        while todo:
            cur = todo.pop()
            for parent in self.parents.get(cur, ()):
                if parent not in seen and parent not in banned:
                    seen.add(parent)
                    todo.append(parent)
        result = frozenset(seen)
        self._ancestor_cache[key] = result
        return result

    def ancestors(self, natures: Iterable[int], banned: frozenset[int] = frozenset()) -> frozenset[int]:
        """Full unbanned category membership of an entity with these natures."""
        out: set[int] = set()
        for nat in natures:
            out |= self.type_ancestors(nat, banned)
        return frozenset(out)
