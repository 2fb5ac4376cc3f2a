# --- File: ./resticweb/tree.py ---
"""
Folds the flat, path-tagged entries of a listing into an ordered tree.

Siblings keep the order in which the listing first mentioned them. A directory
that only shows up as part of a deeper path gets a synthesized record and is
marked expanded, so the tree opens down to every listed entry.
"""
from .records import PathItem
from .render import render_node, render_nodes

PATH_SEP = '/'


class Node:
    """One directory or file in the tree."""

    __slots__ = ('item', 'path_chain', 'children', 'is_expanded', 'is_inferred')

    def __init__(self, item: PathItem, path_chain: str, is_expanded=False, is_inferred=False):
        self.item = item
        self.path_chain = path_chain
        self.children = Nodes()
        self.is_expanded = is_expanded
        self.is_inferred = is_inferred

    @property
    def name(self):
        return self.item.name

    @property
    def path(self):
        return self.item.path

    @property
    def type(self):
        return self.item.type

    @property
    def is_dir(self):
        return self.item.is_dir

    @property
    def is_leaf(self):
        """True when this node is the entry its record describes, not an ancestor of it."""
        return self.path_chain == self.item.path

    def render(self, ctx):
        return render_node(self, ctx)

    def __repr__(self):
        return f"Node({self.path_chain!r}, type={self.type!r}, children={len(self.children)})"


class Nodes:
    """Ordered siblings at one depth, with a name index for lookups."""

    def __init__(self):
        self._nodes = []
        self._index = {}

    def __iter__(self):
        return iter(self._nodes)

    def __len__(self):
        return len(self._nodes)

    def __getitem__(self, i):
        return self._nodes[i]

    def __bool__(self):
        return bool(self._nodes)

    def names(self):
        return [n.name for n in self._nodes]

    def find(self, name):
        """Returns the first sibling called `name`, or None."""
        i = self._index.get(name)
        return None if i is None else self._nodes[i]

    def _append(self, node):
        self._index.setdefault(node.name, len(self._nodes))
        self._nodes.append(node)
        return node

    def add(self, item: PathItem):
        """
        Inserts one entry, creating or reopening the directories above it.

        At the last segment, an explicit entry adopts a same-named sibling that
        was only inferred as a directory, keeping its children. Otherwise a new
        node is appended, so duplicate paths are kept.
        """
        parts = [p for p in item.path.split(PATH_SEP) if p]
        if not parts:
            return None

        cur = self
        chain = []
        for depth, part in enumerate(parts):
            chain.append(part)
            path_chain = PATH_SEP + PATH_SEP.join(chain)
            existing = cur.find(part)

            if depth == len(parts) - 1:
                if existing is not None and existing.is_inferred:
                    existing.item = item
                    existing.is_inferred = False
                    return existing
                return cur._append(Node(item, path_chain))

            if existing is None:
                existing = cur._append(Node(item.as_inferred_dir(part), path_chain,
                                            is_expanded=True, is_inferred=True))
            else:
                existing.is_expanded = True
            cur = existing.children
        return None

    def add_all(self, items):
        for item in items:
            self.add(item)
        return self

    def leaves(self):
        """Yields every node that carries its own listed entry, depth-first."""
        for node in self._nodes:
            if node.is_leaf:
                yield node
            yield from node.children.leaves()

    def render(self, ctx):
        return render_nodes(self, ctx)

    def __repr__(self):
        return f"Nodes({self._nodes!r})"


def build_tree(items):
    """Builds a forest from an iterable of PathItem."""
    return Nodes().add_all(items)
