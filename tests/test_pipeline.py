"""
End-to-end tests for PDF bytes -> MeasurementExtractionResult.
"""

import fitz  # PyMuPDF
import pytest

from roofing.calculator import calculate_materials
from roofing.config import ParsingConfig
from roofing.confidence import GENERIC_PARSER_WARNING, UNKNOWN_FORMAT_WARNING
from roofing.errors import UnreadableDocumentError
from roofing.extractor import extract_from_layout, extract_measurements, extract_measurements_from_file
from roofing.models import DetectedFormat, MeasurementExtractionResult
from roofing.presets import PresetFactors


class TestVendorReports:

    def test_eagleview_report(self, make_pdf, report_lines):
        result = extract_measurements(make_pdf([report_lines["eagleview"]]))
        assert result.detected_format == DetectedFormat.EAGLEVIEW
        assert result.measurements.total_roof_area == 2950.0
        assert result.measurements.total_squares == pytest.approx(29.5)
        assert result.measurements.facet_count == 12
        assert result.field_sources["total_squares"] == "derived"
        assert result.confidence == pytest.approx(86.7)
        assert result.page_count == 1
        assert result.is_successful

    def test_hover_report(self, make_pdf, report_lines):
        result = extract_measurements(make_pdf([report_lines["hover"]]))
        assert result.detected_format == DetectedFormat.HOVER
        assert result.confidence == pytest.approx(100.0)
        assert result.warnings == ()

    def test_multi_page_report(self, make_pdf, report_lines):
        lines = report_lines["eagleview"]
        result = extract_measurements(make_pdf([lines[:4], lines[4:]]))
        assert result.page_count == 2
        assert result.measurements.eave_length == 120.0


class TestGenericAndUnknown:

    def test_area_only_generic_report(self, make_pdf, report_lines):
        result = extract_measurements(make_pdf([report_lines["generic_area_only"]]))
        assert result.detected_format == DetectedFormat.GENERIC
        assert result.measurements.total_squares == pytest.approx(29.5)
        assert "Total squares derived from area" in result.warnings
        assert GENERIC_PARSER_WARNING in result.warnings
        assert result.confidence == pytest.approx(55.0)

    def test_squares_only_unknown_report(self, make_pdf, report_lines):
        result = extract_measurements(make_pdf([report_lines["unknown"]]))
        assert result.detected_format == DetectedFormat.UNKNOWN
        assert result.measurements.total_squares == 30.0
        assert result.measurements.total_roof_area == 3000.0
        assert result.confidence <= 40
        assert UNKNOWN_FORMAT_WARNING in result.warnings

        materials = calculate_materials(result.measurements, PresetFactors())
        assert materials["Shingles"] == 99
        assert materials["Underlayment"] == 4
        assert materials["Coil Nails"] == 60
        assert materials["Ridge Cap"] == 0
        assert materials["Starter Strip"] == 0

    def test_generic_without_values_is_unknown(self, make_lines_layout):
        layout = make_lines_layout(["Roof measurement report", "Ridges and valleys pending site visit"])
        result = extract_from_layout(layout)
        assert result.detected_format == DetectedFormat.UNKNOWN
        assert result.confidence == 0.0
        assert not result.is_successful

    def test_config_reaches_every_stage(self, make_lines_layout):
        layout = make_lines_layout(["Total Squares: 600", "Ridge: 50 ft", "Eave: 120 ft"])
        default = extract_from_layout(layout)
        relaxed = extract_from_layout(layout, ParsingConfig(max_plausible_squares=1000))
        assert default.measurements.total_squares == 0.0
        assert relaxed.measurements.total_squares == 600.0

    def test_implausible_squares_reported_in_warnings(self, make_lines_layout):
        result = extract_from_layout(make_lines_layout(["Roof Measurement Report", "Total Squares: 2950", "Ridges: 50 ft"]))
        assert result.measurements.total_squares == 0
        assert any("2950" in w and "implausible" in w for w in result.warnings)


class TestUnreadable:

    @pytest.mark.parametrize("data", [b"", b"this is not a pdf", b"%PDF-1.4\n%%EOF"])
    def test_garbage(self, data):
        with pytest.raises(UnreadableDocumentError) as exc_info:
            extract_measurements(data)
        assert str(exc_info.value).startswith("Could not read PDF")

    def test_encrypted(self, report_lines):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "EagleView Premium Report")
        data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="secret")
        doc.close()
        with pytest.raises(UnreadableDocumentError):
            extract_measurements(data)

    def test_image_only(self):
        doc = fitz.open()
        doc.new_page()
        data = doc.tobytes()
        doc.close()
        with pytest.raises(UnreadableDocumentError):
            extract_measurements(data)


class TestResult:

    def test_from_file(self, tmp_path, make_pdf, report_lines):
        path = tmp_path / "report.pdf"
        path.write_bytes(make_pdf([report_lines["hover"]]))
        result = extract_measurements_from_file(path)
        assert result.detected_format == DetectedFormat.HOVER

    def test_result_is_immutable(self, make_pdf, report_lines):
        result = extract_measurements(make_pdf([report_lines["hover"]]))
        with pytest.raises(AttributeError):
            result.confidence = 0.0

    def test_dict_round_trip(self, make_pdf, report_lines):
        result = extract_measurements(make_pdf([report_lines["eagleview"]]))
        assert MeasurementExtractionResult.from_dict(result.to_dict()) == result

    def test_independent_calls(self, make_pdf, report_lines):
        data = make_pdf([report_lines["eagleview"]])
        assert extract_measurements(data) == extract_measurements(data)
