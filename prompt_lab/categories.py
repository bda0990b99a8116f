"""
Category index.

Categories are kept as an arena (id -> Category) plus an index-based children
map (id -> ordered child ids). Every traversal is iterative with a visited
set, so a corrupt parent chain can never recurse forever.
"""

import logging
import uuid
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import CategoryCycleError, CategoryNotFoundError
from .models import Category, CategoryNode
from .seed import initial_categories
from .storage import CATEGORIES_KEY, KeyValueStore

log = logging.getLogger(__name__)


def _link(categories: Sequence[Category]) -> Tuple[Dict[str, Category], Dict[str, List[str]], List[str]]:
    """
    Build the arena, children map and root list for ``categories``.

    Dangling parents make a root. Nodes stuck in a parent cycle are not
    reachable from any root; the first of them (in input order) is promoted
    to a root and its parent edge dropped, until every node is reachable.
    """
    arena: Dict[str, Category] = {}
    order: Dict[str, int] = {}
    for cat in categories:
        if cat.id in arena:
            log.warning("Duplicate category id %s ignored", cat.id)
            continue
        arena[cat.id] = cat
        order[cat.id] = len(order)

    children: Dict[str, List[str]] = {cid: [] for cid in arena}
    roots: List[str] = []
    for cid, cat in arena.items():
        if cat.parent_id is not None and cat.parent_id in arena and cat.parent_id != cid:
            children[cat.parent_id].append(cid)
        else:
            roots.append(cid)

    visited = set()

    def mark(start: str) -> None:
        stack = [start]
        while stack:
            cid = stack.pop()
            if cid in visited:
                continue
            visited.add(cid)
            stack.extend(children[cid])

    for root in roots:
        mark(root)

    for cid in arena:
        if cid in visited:
            continue
        log.warning("Category %s is part of a parent cycle; treating it as a root", cid)
        parent = arena[cid].parent_id
        if parent in children and cid in children[parent]:
            children[parent].remove(cid)
        roots.append(cid)
        mark(cid)

    roots.sort(key=order.__getitem__)
    return arena, children, roots


def build_forest(categories: Sequence[Category]) -> List[CategoryNode]:
    """
    Build a rooted forest from a flat list of categories.

    Sibling order follows input order. Each input category appears exactly
    once in the result.
    """
    arena, children, roots = _link(categories)
    nodes = {cid: CategoryNode(category=cat) for cid, cat in arena.items()}
    for parent_id, child_ids in children.items():
        nodes[parent_id].children.extend(nodes[c] for c in child_ids)
    return [nodes[r] for r in roots]


class CategoryIndex:
    """
    Authoritative set of categories for a workspace session.

    Loads from the ``categories`` namespace, seeding it on first run, and
    writes the full set back after every change.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._categories: List[Category] = self._load()
        self._rebuild()

    def _load(self) -> List[Category]:
        raw = self.store.get(CATEGORIES_KEY)
        if raw is None:
            seeded = initial_categories()
            self.store.set(CATEGORIES_KEY, [c.to_store() for c in seeded])
            log.info("Seeded %d categories", len(seeded))
            return seeded
        return [Category.model_validate(item) for item in raw]

    def _rebuild(self) -> None:
        self._arena, self._children, self._roots = _link(self._categories)

    def _persist(self) -> None:
        self.store.set(CATEGORIES_KEY, [c.to_store() for c in self._categories])
        log.info("Saved %d categories", len(self._categories))

    # ----------------- queries -----------------

    @property
    def categories(self) -> List[Category]:
        return list(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: str) -> bool:
        return category_id in self._arena

    def get(self, category_id: str) -> Optional[Category]:
        return self._arena.get(category_id)

    def roots(self) -> List[Category]:
        return [self._arena[r] for r in self._roots]

    def children(self, category_id: str) -> List[Category]:
        return [self._arena[c] for c in self._children.get(category_id, [])]

    def forest(self) -> List[CategoryNode]:
        return build_forest(self._categories)

    def walk(self) -> Iterator[Tuple[Category, int]]:
        """Yield ``(category, depth)`` in depth-first pre-order."""
        visited = set()
        stack = [(r, 0) for r in reversed(self._roots)]
        while stack:
            cid, depth = stack.pop()
            if cid in visited:
                continue
            visited.add(cid)
            yield self._arena[cid], depth
            stack.extend((c, depth + 1) for c in reversed(self._children[cid]))

    def descendants(self, category_id: str) -> List[Category]:
        """All categories below ``category_id``, pre-order."""
        if category_id not in self._arena:
            raise CategoryNotFoundError(f"Unknown category: {category_id}")
        result = []
        visited = {category_id}
        stack = list(reversed(self._children[category_id]))
        while stack:
            cid = stack.pop()
            if cid in visited:
                continue
            visited.add(cid)
            result.append(self._arena[cid])
            stack.extend(reversed(self._children[cid]))
        return result

    def ancestors(self, category_id: str) -> List[Category]:
        """Categories above ``category_id``, nearest parent first."""
        if category_id not in self._arena:
            raise CategoryNotFoundError(f"Unknown category: {category_id}")
        result: List[Category] = []
        seen = {category_id}
        cid = category_id
        # promoted roots keep their stale parent_id; stop where the tree does
        while cid not in self._roots:
            cid = self._arena[cid].parent_id
            if cid is None or cid not in self._arena or cid in seen:
                break
            seen.add(cid)
            result.append(self._arena[cid])
        return result

    def path(self, category_id: str) -> List[str]:
        """Names from the root down to ``category_id``."""
        if category_id not in self._arena:
            return []
        chain = [self._arena[category_id]] + self.ancestors(category_id)
        return [c.name for c in reversed(chain)]

    # ----------------- writes -----------------

    def _check_parent(self, category_id: Optional[str], parent_id: Optional[str]) -> None:
        if parent_id is None:
            return
        if parent_id not in self._arena:
            raise CategoryNotFoundError(f"Unknown parent category: {parent_id}")
        if category_id is None:
            return
        if parent_id == category_id or any(c.id == parent_id for c in self.descendants(category_id)):
            raise CategoryCycleError(
                f"Moving category {category_id} under {parent_id} would create a cycle"
            )

    def add(self, name: str, parent_id: Optional[str] = None) -> Category:
        """Create a category, optionally under ``parent_id``."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name must not be empty")
        self._check_parent(None, parent_id)
        category = Category(id=f"cat_{uuid.uuid4().hex[:12]}", name=name, parent_id=parent_id)
        self._categories.append(category)
        self._rebuild()
        self._persist()
        return category

    def reparent(self, category_id: str, parent_id: Optional[str]) -> Category:
        """Move ``category_id`` under ``parent_id`` (None makes it a root)."""
        if category_id not in self._arena:
            raise CategoryNotFoundError(f"Unknown category: {category_id}")
        self._check_parent(category_id, parent_id)
        updated = self._arena[category_id].model_copy(update={"parent_id": parent_id})
        self._categories = [updated if c.id == category_id else c for c in self._categories]
        self._rebuild()
        self._persist()
        return updated

