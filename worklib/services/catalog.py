"""Catalog snapshot and component resolution."""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Union

from worklib.models.labor import Labor
from worklib.models.material import Material
from worklib.models.work import ComponentKind, Work, WorkComponent

logger = logging.getLogger('catalog')

UNKNOWN_NAME = 'Inconnu'

# Legacy probe order for components saved without a kind
PROBE_ORDER = ('material', 'labor', 'work')

CatalogEntry = Union[Material, Labor, Work]


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of the three library catalogs, indexed by id."""
    materials: Dict[int, Material] = field(default_factory=dict)
    labor: Dict[int, Labor] = field(default_factory=dict)
    works: Dict[int, Work] = field(default_factory=dict)

    @classmethod
    def from_lists(cls, materials: Iterable[Material] = (),
                   labor: Iterable[Labor] = (),
                   works: Iterable[Work] = ()) -> 'Catalog':
        return cls(
            materials={m.id: m for m in materials},
            labor={l.id: l for l in labor},
            works={w.id: w for w in works},
        )

    def lookup(self, kind: ComponentKind, entry_id: int) -> Optional[CatalogEntry]:
        if kind == 'material':
            return self.materials.get(entry_id)
        if kind == 'labor':
            return self.labor.get(entry_id)
        if kind == 'work':
            return self.works.get(entry_id)
        return None


@dataclass(frozen=True)
class ResolvedComponent:
    kind: str
    entity: Optional[CatalogEntry]
    price: float
    unit: str
    name: str

    @property
    def is_unknown(self) -> bool:
        return self.kind == 'unknown'


UNKNOWN = ResolvedComponent(kind='unknown', entity=None, price=0.0, unit='', name=UNKNOWN_NAME)


def classify_component_id(entry_id: int, catalog: Catalog) -> Optional[ComponentKind]:
    """Find which catalog holds `entry_id`; first match in PROBE_ORDER wins."""
    for kind in PROBE_ORDER:
        if catalog.lookup(kind, entry_id) is not None:
            return kind
    return None


def resolve(component: WorkComponent, catalog: Catalog) -> ResolvedComponent:
    """
    Resolve a component against the catalog.

    Never raises: a reference that matches nothing resolves to UNKNOWN, which
    has a zero price and the name "Inconnu".
    """
    kind = component.kind or classify_component_id(component.id, catalog)
    entity = catalog.lookup(kind, component.id) if kind else None
    if entity is None:
        logger.debug(f"Component {component.kind or '?'}:{component.id} not found in catalog")
        return UNKNOWN

    if kind == 'work':
        price = entity.recommended_price
    else:
        price = entity.unit_price
    return ResolvedComponent(
        kind=kind,
        entity=entity,
        price=float(price or 0),
        unit=entity.unit,
        name=entity.name,
    )
