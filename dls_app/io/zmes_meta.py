from __future__ import annotations

from typing import Any, Dict, Tuple

from dls_app.io.zmes_tree import ZmesParameter, find_parameter, find_parameter_deep

# (parameter name, meta key) pairs read from the direct children of a record
TOP_LEVEL_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Operator Name", "operatorName"),
    ("Measurement Start Date And Time", "measurementStartDateTime"),
    ("Measurement Completed Date And Time", "measurementCompletedDateTime"),
    ("Repeat", "repeat"),
    ("Number Of Repeats", "numberOfRepeats"),
    ("Pause Between Repeats (s)", "pauseBetweenRepeats"),
    ("Quality Indicator", "qualityIndicator"),
    ("Result State", "resultState"),
    ("Measurement Type", "measurementType"),
)

# Cumulants results, searched anywhere in the record
DEEP_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Z-Average (nm)", "zAverage"),
    ("Polydispersity Index (PI)", "polydispersityIndex"),
    ("Derived Mean Count Rate (kcps)", "derivedMeanCountRate"),
)

# Searched only below "Material Settings"; "Core Characteristics" reuses these names
MATERIAL_SCOPE = "Material Settings"
MATERIAL_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Material RI", "materialRI"),
    ("Material Absorption", "materialAbsorption"),
)

DISPERSANT_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Dispersant Viscosity (cP)", "dispersantViscosity"),
    ("Dispersant RI", "dispersantRI"),
)


def extract_title(parameters: ZmesParameter) -> str:
    """Return the sample name of a record, or an empty string."""

    sample_settings = find_parameter(parameters.children, "Sample Settings")
    if sample_settings is None:
        return ""
    sample_name = find_parameter_deep(sample_settings, "Sample Name")
    if sample_name is not None and isinstance(sample_name.value, str):
        return sample_name.value
    return ""


def _collect_deep(root: ZmesParameter, fields: Tuple[Tuple[str, str], ...], meta: Dict[str, Any]) -> None:
    for parameter_name, key in fields:
        parameter = find_parameter_deep(root, parameter_name)
        if parameter is not None and parameter.value is not None:
            meta[key] = parameter.value


def extract_meta(parameters: ZmesParameter) -> Dict[str, Any]:
    """Pull scalar measurement metadata out of a record tree.

    Values are copied as found; missing fields are left out of the result.
    """

    meta: Dict[str, Any] = {}
    for parameter_name, key in TOP_LEVEL_FIELDS:
        parameter = find_parameter(parameters.children, parameter_name)
        if parameter is not None and parameter.value is not None:
            meta[key] = parameter.value

    _collect_deep(parameters, DEEP_FIELDS, meta)

    material_settings = find_parameter_deep(parameters, MATERIAL_SCOPE)
    if material_settings is not None:
        _collect_deep(material_settings, MATERIAL_FIELDS, meta)

    _collect_deep(parameters, DISPERSANT_FIELDS, meta)
    return meta
