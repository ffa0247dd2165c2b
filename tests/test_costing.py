"""Tests for catalog resolution and cost aggregation."""
import pytest

from worklib.models.labor import Labor
from worklib.models.material import Material
from worklib.models.work import Work, WorkComponent
from worklib.services.catalog import Catalog, UNKNOWN_NAME, classify_component_id, resolve
from worklib.services.costing import (
    apply_margin, calculate_costs, price_work, recalculation_order, reprice_all
)


def material(id, unit_price, unit="u", name=None):
    return Material(id=id, name=name or f"Material {id}", unit=unit, unit_price=unit_price)


def labor(id, unit_price, name=None):
    return Labor(id=id, name=name or f"Labor {id}", unit_price=unit_price)


def work(id, components=(), margin=None, recommended_price=0, name=None):
    return Work(
        id=id, name=name or f"Work {id}", unit="u", margin=margin,
        components=list(components), recommended_price=recommended_price,
    )


def comp(kind, id, quantity):
    return WorkComponent(kind=kind, id=id, quantity=quantity)


class TestResolve:
    """Tests for component resolution."""

    def test_material(self):
        catalog = Catalog.from_lists(materials=[material(1, 12.5, unit="kg", name="Sable")])
        resolved = resolve(comp('material', 1, 2), catalog)
        assert resolved.kind == 'material'
        assert resolved.name == "Sable"
        assert resolved.price == 12.5
        assert resolved.unit == "kg"

    def test_sub_work_uses_recommended_price(self):
        catalog = Catalog.from_lists(works=[work(5, recommended_price=480)])
        resolved = resolve(comp('work', 5, 1), catalog)
        assert resolved.kind == 'work'
        assert resolved.price == 480

    def test_kind_tag_disambiguates_colliding_ids(self):
        catalog = Catalog.from_lists(materials=[material(1, 10)], labor=[labor(1, 45)])
        assert resolve(comp('labor', 1, 1), catalog).kind == 'labor'
        assert resolve(comp('material', 1, 1), catalog).kind == 'material'

    def test_untagged_component_probes_material_first(self):
        catalog = Catalog.from_lists(
            materials=[material(1, 10)], labor=[labor(1, 45)], works=[work(1)]
        )
        resolved = resolve(WorkComponent(id=1, quantity=1), catalog)
        assert resolved.kind == 'material'

    def test_classify(self):
        catalog = Catalog.from_lists(labor=[labor(2, 45)], works=[work(3)])
        assert classify_component_id(2, catalog) == 'labor'
        assert classify_component_id(3, catalog) == 'work'
        assert classify_component_id(99, catalog) is None

    def test_dangling_reference_is_unknown(self):
        resolved = resolve(comp('material', 42, 3), Catalog())
        assert resolved.kind == 'unknown'
        assert resolved.is_unknown
        assert resolved.name == UNKNOWN_NAME
        assert resolved.price == 0
        assert resolved.unit == ""

    def test_tag_pointing_at_wrong_catalog_is_unknown(self):
        catalog = Catalog.from_lists(materials=[material(1, 10)])
        assert resolve(comp('work', 1, 1), catalog).kind == 'unknown'


class TestCalculateCosts:
    """End-to-end costing scenarios."""

    def test_materials_only(self):
        catalog = Catalog.from_lists(materials=[material(1, 100), material(2, 50)])
        costs = calculate_costs(
            work(10, [comp('material', 1, 3), comp('material', 2, 2)], margin=20), catalog
        )
        assert costs.material_cost == pytest.approx(400)
        assert costs.labor_cost == 0
        assert costs.sub_works_cost == 0
        assert costs.total_cost == pytest.approx(400)
        assert costs.margin_amount == pytest.approx(80)
        assert costs.recommended_price == pytest.approx(480)
        assert costs.material_percentage == pytest.approx(100)

    def test_labor_with_zero_margin(self):
        catalog = Catalog.from_lists(labor=[labor(1, 200)])
        costs = calculate_costs(work(10, [comp('labor', 1, 5)], margin=0), catalog)
        assert costs.labor_cost == pytest.approx(1000)
        assert costs.total_cost == pytest.approx(1000)
        assert costs.margin == 0
        assert costs.recommended_price == pytest.approx(1000)

    def test_sub_work_contributes_sale_price(self):
        sub = work(2, [comp('material', 1, 1)], recommended_price=500)
        catalog = Catalog.from_lists(materials=[material(1, 10)], works=[sub])
        parent = work(1, [comp('work', 2, 2), comp('material', 1, 10)], margin=20)

        costs = calculate_costs(parent, catalog)
        assert costs.material_cost == pytest.approx(100)
        assert costs.sub_works_cost == pytest.approx(1000)
        assert costs.total_cost == pytest.approx(1100)
        assert costs.recommended_price == pytest.approx(1320)

    def test_dangling_reference_contributes_nothing(self):
        catalog = Catalog.from_lists(materials=[material(1, 100)])
        costs = calculate_costs(
            work(10, [comp('material', 1, 1), comp('labor', 99, 5)], margin=20), catalog
        )
        assert costs.material_cost == pytest.approx(100)
        assert costs.labor_cost == 0
        assert costs.sub_works_cost == 0
        assert costs.total_cost == pytest.approx(100)
        assert costs.unknown_components == [99]

    def test_empty_work(self):
        costs = calculate_costs(work(10, []), Catalog())
        assert costs.total_cost == 0
        assert costs.recommended_price == 0
        assert costs.material_percentage == 0
        assert costs.labor_percentage == 0
        assert costs.sub_works_percentage == 0

    def test_margin_defaults_to_twenty(self):
        catalog = Catalog.from_lists(materials=[material(1, 100)])
        costs = calculate_costs(work(10, [comp('material', 1, 1)]), catalog)
        assert costs.margin == 20
        assert costs.recommended_price == pytest.approx(120)

    def test_configured_default_margin(self):
        catalog = Catalog.from_lists(materials=[material(1, 100)])
        costs = calculate_costs(work(10, [comp('material', 1, 1)]), catalog, default_margin=35)
        assert costs.margin == 35
        assert costs.recommended_price == pytest.approx(135)

    def test_additivity_and_partition(self):
        catalog = Catalog.from_lists(
            materials=[material(1, 13.37)],
            labor=[labor(2, 41.9)],
            works=[work(3, recommended_price=77.7)],
        )
        costs = calculate_costs(
            work(10, [comp('material', 1, 3.3), comp('labor', 2, 1.25), comp('work', 3, 0.4)]),
            catalog,
        )
        assert costs.total_cost == pytest.approx(
            costs.material_cost + costs.labor_cost + costs.sub_works_cost
        )
        assert (
            costs.material_percentage + costs.labor_percentage + costs.sub_works_percentage
        ) == pytest.approx(100)

    @pytest.mark.parametrize("margin", [0, 7.5, 20, 100, 500])
    def test_margin_formula(self, margin):
        catalog = Catalog.from_lists(labor=[labor(1, 37.3)])
        costs = calculate_costs(work(10, [comp('labor', 1, 3)], margin=margin), catalog)
        assert costs.recommended_price == pytest.approx(costs.total_cost * (1 + margin / 100))

    def test_does_not_mutate_inputs(self):
        catalog = Catalog.from_lists(materials=[material(1, 100)])
        w = work(10, [comp('material', 1, 2)])
        calculate_costs(w, catalog)
        assert w.total_cost == 0
        assert w.recommended_price == 0
        assert catalog.materials[1].unit_price == 100

    def test_repeatable(self):
        catalog = Catalog.from_lists(materials=[material(1, 3.3)], labor=[labor(2, 1.1)])
        w = work(10, [comp('material', 1, 7), comp('labor', 2, 9)], margin=12)
        assert calculate_costs(w, catalog) == calculate_costs(w, catalog)


class TestApplyMargin:
    """Tests for the margin step."""

    def test_none_uses_default(self):
        assert apply_margin(100.0, None) == (20.0, 20.0, 120.0)

    def test_explicit_zero_is_kept(self):
        assert apply_margin(100.0, 0) == (0, 0.0, 100.0)

    def test_no_rounding(self):
        margin, amount, price = apply_margin(10.0 / 3, 10)
        assert amount == pytest.approx(1 / 3)
        assert price == pytest.approx(11 / 3)


class TestSubWorkPricing:
    """Sub-works are opaque: parents see their price only when repriced."""

    def test_sub_work_internals_do_not_leak_into_parent(self):
        sub = work(2, [comp('material', 1, 1)], recommended_price=500)
        parent = work(1, [comp('work', 2, 1)], margin=0)
        before = calculate_costs(parent, Catalog.from_lists([material(1, 10)], works=[sub]))

        changed = sub.model_copy(update={'components': [comp('material', 1, 50)]})
        after = calculate_costs(parent, Catalog.from_lists([material(1, 10)], works=[changed]))

        assert before.sub_works_cost == after.sub_works_cost == pytest.approx(500)

    def test_reprice_all_prices_sub_works_first(self):
        sub = work(2, [comp('material', 1, 2)], margin=0, recommended_price=0)
        parent = work(1, [comp('work', 2, 3)], margin=10)
        catalog = Catalog.from_lists([material(1, 10)], works=[parent, sub])

        priced = {w.id: w for w in reprice_all(catalog)}

        assert priced[2].recommended_price == pytest.approx(20)
        assert priced[1].sub_works_cost == pytest.approx(60)
        assert priced[1].recommended_price == pytest.approx(66)
        # the input snapshot is left alone
        assert catalog.works[2].recommended_price == 0

    def test_price_work_returns_copy(self):
        catalog = Catalog.from_lists([material(1, 100)])
        w = work(1, [comp('material', 1, 2)], margin=50)
        priced = price_work(w, catalog)
        assert priced.total_cost == pytest.approx(200)
        assert priced.recommended_price == pytest.approx(300)
        assert w.recommended_price == 0

    def test_recalculation_order(self):
        c = work(3)
        b = work(2, [comp('work', 3, 1)])
        a = work(1, [comp('work', 2, 1), comp('work', 3, 1)])
        order = [w.id for w in recalculation_order([a, b, c])]
        assert order.index(3) < order.index(2) < order.index(1)

    def test_recalculation_order_survives_cycles(self):
        a = work(1, [comp('work', 2, 1)])
        b = work(2, [comp('work', 1, 1)])
        order = [w.id for w in recalculation_order([a, b])]
        assert sorted(order) == [1, 2]
