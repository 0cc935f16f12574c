"""
Tests for the material calculator.
"""

from dataclasses import replace

import pytest

from roofing.calculator import (
    CAP_NAILS,
    COIL_NAILS,
    DRIP_EDGE,
    ICE_AND_WATER,
    ITEM_ORDER,
    RIDGE_CAP,
    SHINGLES,
    STARTER_STRIP,
    UNDERLAYMENT,
    VALLEY_FLASHING,
    calculate_line_items,
    calculate_materials,
    ceil_units,
)
from roofing.models import RoofMeasurements
from roofing.presets import PresetFactors, builtin_presets


@pytest.fixture
def simple_roof():
    return RoofMeasurements(total_squares=30.0, ridge_length=50.0, eave_length=120.0)


@pytest.fixture
def full_roof():
    return RoofMeasurements(
        total_squares=29.5, total_roof_area=2950.0, ridge_length=50.0,
        hip_length=30.0, valley_length=20.0, eave_length=120.0, rake_length=60.0,
    )


class TestStandardQuantities:
    """30 SQ gable with default factors."""

    def test_quantities(self, simple_roof):
        materials = calculate_materials(simple_roof, PresetFactors())
        assert materials[SHINGLES] == 99
        assert materials[UNDERLAYMENT] == 4
        assert materials[STARTER_STRIP] == 1
        assert materials[RIDGE_CAP] == 2
        assert materials[DRIP_EDGE] == 12
        assert materials[COIL_NAILS] == 60
        assert materials[CAP_NAILS] == 200

    def test_no_valley_no_valley_flashing(self, simple_roof):
        materials = calculate_materials(simple_roof, PresetFactors())
        assert VALLEY_FLASHING not in materials
        assert materials[ICE_AND_WATER] == 0

    def test_items_in_fixed_order(self, full_roof):
        names = [item.name for item in calculate_line_items(full_roof, PresetFactors())]
        assert names == [n for n in ITEM_ORDER if n in names]

    def test_valley_items(self, full_roof):
        materials = calculate_materials(full_roof, PresetFactors())
        assert materials[VALLEY_FLASHING] == 2
        # 20 LF valleys against 200 sq ft rolls
        assert materials[ICE_AND_WATER] == 1

    def test_drip_edge_covers_eaves_and_rakes(self, full_roof):
        assert calculate_materials(full_roof, PresetFactors())[DRIP_EDGE] == 18

    def test_underlayment_falls_back_to_area(self):
        roof = RoofMeasurements(total_roof_area=2950.0)
        assert calculate_materials(roof, PresetFactors())[UNDERLAYMENT] == 4


class TestFlags:

    def test_ridge_cap_and_drip_edge_optional(self, simple_roof):
        factors = PresetFactors(includes_ridge_cap=False, includes_drip_edge=False)
        materials = calculate_materials(simple_roof, factors)
        assert RIDGE_CAP not in materials
        assert DRIP_EDGE not in materials

    def test_ice_and_water_off(self, full_roof):
        factors = PresetFactors(requires_ice_water_for_valleys=False, requires_ice_water_for_eaves=False)
        assert ICE_AND_WATER not in calculate_materials(full_roof, factors)

    def test_ice_and_water_along_eaves(self, full_roof):
        factors = PresetFactors(requires_ice_water_for_valleys=False, requires_ice_water_for_eaves=True)
        # 120 LF x 3 ft = 360 sq ft
        assert calculate_materials(full_roof, factors)[ICE_AND_WATER] == 2

    def test_premium_ice_belt(self, full_roof):
        preset = {p.name: p for p in builtin_presets()}["Premium Ice Belt"]
        materials = calculate_materials(full_roof, preset.factors)
        # 20 LF valleys + 120 LF x 6 ft = 740 sq ft
        assert materials[ICE_AND_WATER] == 4
        # 29.5 x 1.15 x 3 = 101.775
        assert materials[SHINGLES] == 102


class TestRoundingAndEdgeCases:

    def test_ceil_units(self):
        assert ceil_units(99.00000000000001) == 99
        assert ceil_units(3.3) == 4
        assert ceil_units(0.0) == 0
        assert ceil_units(-5.0) == 0
        assert ceil_units(float("nan")) == 0
        assert ceil_units(float("inf")) == 0

    def test_zero_yield_gives_zero(self, simple_roof):
        factors = PresetFactors(ridge_cap_lf_per_bundle=0.0, underlayment_sqft_per_roll=0.0)
        materials = calculate_materials(simple_roof, factors)
        assert materials[RIDGE_CAP] == 0
        assert materials[UNDERLAYMENT] == 0

    def test_empty_measurements(self):
        materials = calculate_materials(RoofMeasurements(), PresetFactors())
        assert all(qty == 0 for qty in materials.values())

    def test_quantities_are_whole_and_cover_the_requirement(self, full_roof):
        factors = PresetFactors()
        raw = full_roof.total_squares * (1 + factors.shingle_waste_factor) * factors.bundles_per_square
        qty = calculate_materials(full_roof, factors)[SHINGLES]
        assert isinstance(qty, int)
        assert raw - 1e-6 <= qty < raw + 1

    def test_deterministic(self, full_roof):
        factors = PresetFactors()
        assert calculate_materials(full_roof, factors) == calculate_materials(full_roof, factors)

    @pytest.mark.parametrize("field", ["total_squares", "ridge_length", "eave_length", "valley_length", "rake_length"])
    def test_more_roof_never_means_less_material(self, full_roof, field):
        factors = PresetFactors()
        before = calculate_materials(full_roof, factors)
        bigger = full_roof.copy(**{field: getattr(full_roof, field) * 1.5})
        after = calculate_materials(bigger, factors)
        for name, qty in before.items():
            assert after[name] >= qty

    @pytest.mark.parametrize("field,scale,item", [
        ("shingle_waste_factor", 2.0, SHINGLES),
        ("underlayment_waste_factor", 2.0, UNDERLAYMENT),
        ("underlayment_sqft_per_roll", 0.5, UNDERLAYMENT),
        ("starter_strip_lf_per_bundle", 0.5, STARTER_STRIP),
        ("ridge_cap_lf_per_bundle", 0.5, RIDGE_CAP),
        ("drip_edge_lf_per_piece", 0.5, DRIP_EDGE),
        ("valley_flashing_lf_per_piece", 0.5, VALLEY_FLASHING),
        ("ice_water_sqft_per_roll", 0.5, ICE_AND_WATER),
    ])
    def test_more_waste_or_less_yield_never_means_less_material(self, full_roof, field, scale, item):
        factors = PresetFactors(requires_ice_water_for_valleys=True)
        before = calculate_materials(full_roof, factors)
        changed = replace(factors, **{field: getattr(factors, field) * scale})
        after = calculate_materials(full_roof, changed)
        assert after[item] >= before[item]
        for name, qty in before.items():
            if name != item:
                assert after[name] == qty

    def test_line_item_notes(self, simple_roof):
        items = {item.name: item for item in calculate_line_items(simple_roof, PresetFactors())}
        assert items[SHINGLES].unit == "bundles"
        assert items[SHINGLES].category == "Shingles"
        assert "30.0 SQ" in items[SHINGLES].notes
        assert "synthetic" in items[UNDERLAYMENT].notes
