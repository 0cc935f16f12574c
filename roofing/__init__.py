# Roof measurement extraction and material calculation
from .errors import (
    RoofingError,
    UnreadableDocumentError,
    FieldNotFoundError,
    InconsistentMeasurementWarning,
    InvalidPresetImportError,
    PresetError,
)
from .models import (
    DetectedFormat,
    FieldSource,
    RawTextRun,
    Rect,
    RoofMeasurements,
    MeasurementExtractionResult,
)
from .config import RoofingConfig, ParsingConfig, load_config
from .text_layout import extract_text_runs, extract_layout
from .format_detector import detect_format
from .field_extractor import extract_fields
from .normalizer import normalize
from .confidence import score_extraction
from .extractor import extract_measurements, extract_measurements_from_file
from .presets import Preset, PresetFactors, PresetStore, builtin_presets, export_preset
from .calculator import MaterialLineItem, calculate_materials, calculate_line_items
from .orders import MaterialOrder, OrderStatus, create_order

__all__ = [
    "RoofingError",
    "UnreadableDocumentError",
    "FieldNotFoundError",
    "InconsistentMeasurementWarning",
    "InvalidPresetImportError",
    "PresetError",
    "DetectedFormat",
    "FieldSource",
    "RawTextRun",
    "Rect",
    "RoofMeasurements",
    "MeasurementExtractionResult",
    "RoofingConfig",
    "ParsingConfig",
    "load_config",
    "extract_text_runs",
    "extract_layout",
    "detect_format",
    "extract_fields",
    "normalize",
    "score_extraction",
    "extract_measurements",
    "extract_measurements_from_file",
    "Preset",
    "PresetFactors",
    "PresetStore",
    "builtin_presets",
    "export_preset",
    "MaterialLineItem",
    "calculate_materials",
    "calculate_line_items",
    "MaterialOrder",
    "OrderStatus",
    "create_order",
]
