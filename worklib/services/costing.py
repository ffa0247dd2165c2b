"""
Cost aggregation for works.

A work's cost base is the sum of its material and labor lines plus its
sub-works taken at their recommended (sale) price. Sub-works are not walked:
their own price was settled when they were last priced.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from worklib.models.costing import CostBreakdown
from worklib.models.work import Work
from worklib.services.catalog import Catalog, resolve

logger = logging.getLogger('costing')

DEFAULT_MARGIN = 20.0


def apply_margin(total_cost: float, margin: Optional[float] = None,
                 default_margin: float = DEFAULT_MARGIN) -> Tuple[float, float, float]:
    """Return (margin, margin_amount, recommended_price). An explicit 0 margin is kept."""
    if margin is None:
        margin = default_margin
    margin_amount = total_cost * margin / 100
    return margin, margin_amount, total_cost + margin_amount


def _percentage(part: float, total: float) -> float:
    return part / total * 100 if total > 0 else 0.0


def calculate_costs(work: Work, catalog: Catalog,
                    default_margin: float = DEFAULT_MARGIN) -> CostBreakdown:
    """Compute the cost breakdown of `work` against the current catalog."""
    material_cost = 0.0
    labor_cost = 0.0
    sub_works_cost = 0.0
    unknown = []

    for component in work.components or []:
        resolved = resolve(component, catalog)
        if resolved.kind == 'material':
            material_cost += resolved.price * component.quantity
        elif resolved.kind == 'labor':
            labor_cost += resolved.price * component.quantity
        elif resolved.kind == 'work':
            sub_works_cost += resolved.price * component.quantity
        else:
            unknown.append(component.id)

    total_cost = material_cost + labor_cost + sub_works_cost
    margin, margin_amount, recommended_price = apply_margin(total_cost, work.margin, default_margin)

    if unknown:
        logger.debug(f"Work {work.id}: {len(unknown)} unresolved component(s) priced at 0")

    return CostBreakdown(
        material_cost=material_cost,
        labor_cost=labor_cost,
        sub_works_cost=sub_works_cost,
        total_cost=total_cost,
        margin=margin,
        margin_amount=margin_amount,
        recommended_price=recommended_price,
        material_percentage=_percentage(material_cost, total_cost),
        labor_percentage=_percentage(labor_cost, total_cost),
        sub_works_percentage=_percentage(sub_works_cost, total_cost),
        unknown_components=unknown,
    )


def price_work(work: Work, catalog: Catalog,
               default_margin: float = DEFAULT_MARGIN) -> Work:
    """Return a copy of `work` with its cached cost fields refreshed."""
    costs = calculate_costs(work, catalog, default_margin)
    return work.model_copy(update={
        'material_cost': costs.material_cost,
        'labor_cost': costs.labor_cost,
        'sub_works_cost': costs.sub_works_cost,
        'total_cost': costs.total_cost,
        'recommended_price': costs.recommended_price,
    })


def recalculation_order(works: Iterable[Work]) -> List[Work]:
    """
    Order works so every sub-work comes before the works that contain it.

    Back edges of a cyclic composition are ignored; each work still appears
    exactly once.
    """
    by_id: Dict[int, Work] = {w.id: w for w in works}
    ordered: List[Work] = []
    done = set()
    in_progress = set()

    def visit(work: Work):
        if work.id in done or work.id in in_progress:
            return
        in_progress.add(work.id)
        for component in work.components:
            if component.kind == 'work' and component.id in by_id:
                visit(by_id[component.id])
        in_progress.discard(work.id)
        done.add(work.id)
        ordered.append(work)

    for work in by_id.values():
        visit(work)
    return ordered


def reprice_all(catalog: Catalog, default_margin: float = DEFAULT_MARGIN) -> List[Work]:
    """Reprice every work of the catalog, sub-works first, so parents see fresh sale prices."""
    priced: Dict[int, Work] = dict(catalog.works)
    snapshot = Catalog(materials=catalog.materials, labor=catalog.labor, works=priced)
    result = []
    for work in recalculation_order(catalog.works.values()):
        updated = price_work(priced[work.id], snapshot, default_margin)
        priced[work.id] = updated
        result.append(updated)
    return result
