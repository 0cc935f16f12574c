"""
Tests for per-format field extraction.
"""

import pytest

from roofing.config import ParsingConfig
from roofing.errors import FieldNotFoundError
from roofing.field_extractor import extract_field, extract_fields
from roofing.models import DetectedFormat, MEASUREMENT_FIELDS
from roofing.rulesets import GENERIC_RULES


class TestIRoofRules:
    """Label on one line, value on the next, feet-inches lengths."""

    @pytest.fixture
    def extraction(self, make_lines_layout, report_lines):
        return extract_fields(make_lines_layout(report_lines["iroof"]), DetectedFormat.IROOF)

    def test_areas(self, extraction):
        m = extraction.measurements
        assert m.total_roof_area == 2950.0
        assert m.total_squares == 29.5

    def test_lengths(self, extraction):
        m = extraction.measurements
        assert m.ridge_length == 50.0
        assert m.hip_length == pytest.approx(30.5)
        assert m.valley_length == 20.0
        assert m.eave_length == 120.0
        assert m.rake_length == 60.0

    def test_pitch(self, extraction):
        assert extraction.measurements.pitch == "6/12"

    def test_missing_fields_default(self, extraction):
        assert extraction.found["facet_count"] is False
        assert extraction.measurements.facet_count == 0
        assert "facet_count" in extraction.missing_fields

    def test_found_map_covers_every_field(self, extraction):
        assert set(extraction.found) == set(MEASUREMENT_FIELDS)

    def test_vendor_rule_names(self, extraction):
        assert extraction.matched_rules["total_squares"].startswith("iroof:")

    @pytest.mark.parametrize("line", [
        "Roof area 450 SQ FT",
        "Roof area 450 SQ. FT.",
        "Total Squares: 450 SQ FT",
    ])
    def test_square_feet_unit_not_read_as_squares(self, make_lines_layout, line):
        extraction = extract_fields(make_lines_layout(["iRoof", line]), DetectedFormat.IROOF)
        assert extraction.measurements.total_squares != 450.0
        assert extraction.found["total_squares"] is False

    def test_squares_unit_still_read(self, make_lines_layout):
        extraction = extract_fields(make_lines_layout(["iRoof", "Roof total 29.5 SQ"]), DetectedFormat.IROOF)
        assert extraction.measurements.total_squares == 29.5


class TestEagleViewRules:
    """"Label = value unit" pairs."""

    @pytest.fixture
    def extraction(self, make_lines_layout, report_lines):
        return extract_fields(make_lines_layout(report_lines["eagleview"]), DetectedFormat.EAGLEVIEW)

    def test_area_with_thousands_separator(self, extraction):
        assert extraction.measurements.total_roof_area == 2950.0

    def test_squares_not_reported(self, extraction):
        # "sq ft" is area, never squares
        assert extraction.found["total_squares"] is False
        assert extraction.measurements.total_squares == 0.0

    def test_lengths(self, extraction):
        m = extraction.measurements
        assert (m.ridge_length, m.hip_length, m.valley_length) == (50.0, 30.0, 20.0)
        assert m.rake_length == 60.0
        assert m.eave_length == 120.0

    def test_facets_pitch_stories(self, extraction):
        m = extraction.measurements
        assert m.facet_count == 12
        assert m.pitch == "6/12"
        assert m.num_stories == 1

    def test_combined_ridges_hips_line_is_ignored(self, make_lines_layout):
        layout = make_lines_layout([
            "EagleView",
            "Total Ridges/Hips = 80 ft",
            "Ridges = 50 ft",
            "Hips = 30 ft",
        ])
        m = extract_fields(layout, DetectedFormat.EAGLEVIEW).measurements
        assert m.ridge_length == 50.0
        assert m.hip_length == 30.0


class TestHoverRules:

    def test_all_fields(self, make_lines_layout, report_lines):
        extraction = extract_fields(make_lines_layout(report_lines["hover"]), DetectedFormat.HOVER)
        m = extraction.measurements
        assert m.total_roof_area == 2950.0
        assert m.total_squares == 29.5
        assert m.ridge_length == 50.0
        assert m.eave_length == 120.0
        assert m.facet_count == 12
        assert m.pitch == "6/12"

    def test_facet_areas_collected(self, make_lines_layout):
        layout = make_lines_layout(["HOVER", "RF-1 1,200 sq ft", "RF-2 800 sq ft", "RF-3 950 sq ft"])
        m = extract_fields(layout, DetectedFormat.HOVER).measurements
        assert m.facet_areas == (1200.0, 800.0, 950.0)


class TestGenericRules:

    def test_squares_unit(self, make_lines_layout, report_lines):
        extraction = extract_fields(make_lines_layout(report_lines["unknown"]), DetectedFormat.UNKNOWN)
        assert extraction.measurements.total_squares == 30.0
        assert extraction.found_fields == ["total_squares"]

    def test_square_feet_labelled_as_squares_rejected(self, make_lines_layout):
        layout = make_lines_layout(["Total Squares: 2950"])
        extraction = extract_fields(layout, DetectedFormat.GENERIC)
        assert extraction.found["total_squares"] is False

    def test_rejected_square_feet_is_recorded(self, make_lines_layout):
        extraction = extract_fields(make_lines_layout(["Total Squares: 2950"]), DetectedFormat.GENERIC)
        assert len(extraction.rejected) == 1
        assert "2950" in extraction.rejected[0]
        assert "implausible" in extraction.rejected[0]

    def test_later_plausible_match_used(self, make_lines_layout):
        layout = make_lines_layout(["Total Squares: 2950", "Roof total 29.5 SQ"])
        extraction = extract_fields(layout, DetectedFormat.GENERIC)
        assert extraction.measurements.total_squares == 29.5
        assert extraction.rejected

    def test_squares_label_with_area_unit_not_truncated(self, make_lines_layout):
        layout = make_lines_layout(["Total Squares: 2950 sq ft"])
        extraction = extract_fields(layout, DetectedFormat.GENERIC)
        assert extraction.measurements.total_squares != 295.0
        assert extraction.measurements.total_roof_area == 2950.0

    def test_comma_decimal(self, make_lines_layout):
        layout = make_lines_layout(["Roof total 29,5 SQ"])
        assert extract_fields(layout, DetectedFormat.GENERIC).measurements.total_squares == 29.5

    def test_plausibility_threshold_is_configurable(self, make_lines_layout):
        layout = make_lines_layout(["Total Squares: 600"])
        extraction = extract_fields(layout, DetectedFormat.GENERIC, ParsingConfig(max_plausible_squares=1000))
        assert extraction.measurements.total_squares == 600.0

    def test_nothing_found(self, make_lines_layout):
        extraction = extract_fields(make_lines_layout(["Thank you for your business"]), DetectedFormat.GENERIC)
        assert not any(extraction.found.values())
        assert not extraction.measurements.has_data


class TestNearbyScope:
    """Label runs pick up values from the run beside or below them."""

    def test_value_to_the_right(self, make_layout):
        layout = make_layout([
            ("Ridge", 72, 100, 100, 112),
            ("Measured from aerial imagery", 72, 400, 250, 412),
            ("50'", 300, 100, 320, 112),
        ])
        extraction = extract_fields(layout, DetectedFormat.GENERIC)
        assert extraction.measurements.ridge_length == 50.0
        assert extraction.matched_rules["ridge_length"] == "generic:ridge_length:nearby"

    def test_value_below(self, make_layout):
        layout = make_layout([
            ("Eave", 72, 100, 95, 112),
            ("Page 2 of 3", 400, 700, 460, 712),
            ("Customer signature", 72, 600, 200, 612),
            ("120'", 72, 116, 95, 128),
        ])
        extraction = extract_fields(layout, DetectedFormat.GENERIC)
        assert extraction.measurements.eave_length == 120.0

    def test_right_preferred_over_below(self, make_layout):
        layout = make_layout([
            ("Rake", 72, 100, 95, 112),
            ("See diagram", 72, 300, 150, 312),
            ("45'", 72, 116, 95, 128),
            ("60'", 200, 100, 220, 112),
        ])
        assert extract_fields(layout, DetectedFormat.GENERIC).measurements.rake_length == 60.0

    def test_far_values_ignored(self, make_layout):
        layout = make_layout([
            ("Valley", 72, 100, 110, 112),
            ("Notes", 72, 300, 110, 312),
            ("20'", 72, 500, 95, 512),
        ])
        assert extract_fields(layout, DetectedFormat.GENERIC).found["valley_length"] is False

    def test_other_page_ignored(self, make_layout):
        layout = make_layout([
            ("Ridge", 72, 100, 100, 112, 1),
            ("50'", 300, 100, 320, 112, 2),
        ])
        assert extract_fields(layout, DetectedFormat.GENERIC).found["ridge_length"] is False


class TestExtractField:

    def test_raises_when_no_rule_matches(self, make_lines_layout):
        with pytest.raises(FieldNotFoundError) as exc_info:
            extract_field("ridge_length", GENERIC_RULES, make_lines_layout(["nothing here"]), ParsingConfig())
        assert exc_info.value.field_name == "ridge_length"

    def test_parse_failure_falls_through(self, make_lines_layout):
        # 10'14" is not a valid length; the nearby rule still finds nothing, so not found
        layout = make_lines_layout(["Ridge: 10'14\""])
        with pytest.raises(FieldNotFoundError):
            extract_field("ridge_length", GENERIC_RULES, layout, ParsingConfig())
