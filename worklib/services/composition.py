"""
Composition tree of a work.

The tree is an arena: nodes live in a flat list and refer to each other by
integer handles. Only the work's own components are resolved up front; the
children of a sub-work are added the first time it is expanded, so the cost
of a tree follows what is visible. `flatten()` returns the visible rows in
pre-order.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from worklib.models.costing import ComponentRow
from worklib.models.work import Work, WorkComponent
from worklib.services.catalog import Catalog, ResolvedComponent, resolve

logger = logging.getLogger('composition')


class CompositionCycleError(ValueError):
    """A work contains itself through its sub-works."""

    def __init__(self, path: List[int]):
        self.path = list(path)
        super().__init__("Cyclic composition: " + " -> ".join(str(i) for i in self.path))


@dataclass
class CompositionNode:
    handle: int
    parent: Optional[int]
    depth: int
    component: WorkComponent
    resolved: ResolvedComponent
    # Work ids from the root down to the work holding this component
    path: Tuple[int, ...] = ()
    children: List[int] = field(default_factory=list)
    loaded: bool = False
    expanded: bool = False
    cyclic: bool = False

    @property
    def expandable(self) -> bool:
        return (self.resolved.kind == 'work' and not self.cyclic
                and bool(self.resolved.entity.components))


class CompositionTree:
    """Arena of composition nodes for one work."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.nodes: List[CompositionNode] = []
        self.roots: List[int] = []

    @classmethod
    def build(cls, work: Work, catalog: Catalog, strict: bool = False) -> 'CompositionTree':
        """
        Build the tree of `work` with every node collapsed.

        A sub-work already present on the path from the root closes a cycle
        and is flagged `cyclic`, which makes it a leaf. With `strict` the whole
        composition is checked first and CompositionCycleError is raised
        instead.
        """
        if strict:
            cycle = find_cycle(work.id, work.components or [], catalog)
            if cycle:
                raise CompositionCycleError(cycle)
        tree = cls(catalog)
        tree.roots = tree._add_components(work.components or [], None, 0, (work.id,))
        return tree

    def _add_components(self, components: Iterable[WorkComponent], parent: Optional[int],
                        depth: int, path: Tuple[int, ...]) -> List[int]:
        handles = []
        for component in components:
            node = CompositionNode(
                handle=len(self.nodes),
                parent=parent,
                depth=depth,
                component=component,
                resolved=resolve(component, self.catalog),
                path=path,
            )
            if node.resolved.kind == 'work' and node.resolved.entity.id in path:
                node.cyclic = True
                cycle = path[path.index(node.resolved.entity.id):] + (node.resolved.entity.id,)
                logger.warning(f"Cyclic composition detected: {' -> '.join(str(i) for i in cycle)}")
            self.nodes.append(node)
            handles.append(node.handle)
        return handles

    def _load_children(self, node: CompositionNode):
        if node.loaded:
            return
        sub_work = node.resolved.entity
        node.children = self._add_components(
            sub_work.components or [], node.handle, node.depth + 1, node.path + (sub_work.id,)
        )
        node.loaded = True

    def node(self, handle: int) -> CompositionNode:
        return self.nodes[handle]

    def expand(self, handle: int):
        node = self.nodes[handle]
        if node.expandable:
            self._load_children(node)
            node.expanded = True

    def collapse(self, handle: int):
        self.nodes[handle].expanded = False

    def toggle(self, handle: int):
        if self.nodes[handle].expanded:
            self.collapse(handle)
        else:
            self.expand(handle)

    def expand_all(self):
        """Expand every sub-work at every depth. Nodes added on the way are visited too."""
        handle = 0
        while handle < len(self.nodes):
            self.expand(handle)
            handle += 1

    def apply_expanded(self, work_ids: Iterable[int]):
        """Expand every visible sub-work node whose work id is in `work_ids`."""
        wanted = set(work_ids)
        stack = list(reversed(self.roots))
        while stack:
            node = self.nodes[stack.pop()]
            if node.resolved.kind == 'work' and node.component.id in wanted:
                self.expand(node.handle)
            if node.expanded:
                stack.extend(reversed(node.children))

    def flatten(self) -> List[ComponentRow]:
        """Visible rows in pre-order; children follow their expanded parent."""
        rows = []
        stack = list(reversed(self.roots))
        while stack:
            node = self.nodes[stack.pop()]
            rows.append(self._row(node))
            if node.expanded:
                stack.extend(reversed(node.children))
        return rows

    @staticmethod
    def _row(node: CompositionNode) -> ComponentRow:
        return ComponentRow(
            handle=node.handle,
            component=node.component,
            depth=node.depth,
            kind=node.resolved.kind,
            name=node.resolved.name,
            price=node.resolved.price,
            unit=node.resolved.unit,
            expandable=node.expandable,
            expanded=node.expanded,
            cyclic=node.cyclic,
        )


def get_all_components(work: Work, catalog: Catalog,
                       expanded: Optional[Iterable[int]] = None) -> List[ComponentRow]:
    """Flattened composition of `work` with the sub-works in `expanded` opened."""
    tree = CompositionTree.build(work, catalog)
    if expanded:
        tree.apply_expanded(expanded)
    return tree.flatten()


def find_cycle(work_id: Optional[int], components: Iterable[WorkComponent],
               catalog: Catalog) -> Optional[List[int]]:
    """
    Return the id path of the cycle saving `components` on `work_id` would create, if any.

    Depth-first over sub-work references; a work explored once without
    finding a cycle is not explored again.
    """
    cleared: Set[int] = set()

    def visit(components: Iterable[WorkComponent], path: List[int]) -> Optional[List[int]]:
        for component in components:
            resolved = resolve(component, catalog)
            if resolved.kind != 'work':
                continue
            sub_id = resolved.entity.id
            if sub_id in path:
                return path[path.index(sub_id):] + [sub_id]
            if sub_id in cleared:
                continue
            cycle = visit(resolved.entity.components or [], path + [sub_id])
            if cycle:
                return cycle
            cleared.add(sub_id)
        return None

    return visit(components, [work_id] if work_id is not None else [])
