from __future__ import annotations

import numbers
from typing import Any, Dict, Tuple

from dls_app.io.zmes_tree import ZmesParameter, find_parameter, find_parameter_deep

MANUFACTURER = "Malvern Panalytical"
MODEL = "Zetasizer"
SOFTWARE_NAME = "ZS XPLORER"

INSTRUMENT_SETTINGS_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Detector Angle (°)", "detectorAngle"),
    ("Run Duration (s)", "runDuration"),
    ("Number Of Runs", "numberOfRuns"),
    ("Temperature (°C)", "temperature"),
    ("Attenuator", "attenuator"),
    ("Attenuation Factor", "attenuationFactor"),
    ("Cuvette Position (mm)", "cuvettePosition"),
    ("Laser Wavelength (nm)", "laserWavelength"),
)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def extract_settings(parameters: ZmesParameter) -> Dict[str, Any]:
    software: Dict[str, Any] = {"name": SOFTWARE_NAME}
    software_version = find_parameter(parameters.children, "Software Version")
    if software_version is not None and isinstance(software_version.value, str):
        software["version"] = software_version.value

    instrument: Dict[str, Any] = {"manufacturer": MANUFACTURER, "model": MODEL}
    serial_number = find_parameter_deep(parameters, "Instrument Serial Number")
    if serial_number is not None and isinstance(serial_number.value, str):
        instrument["serialNumber"] = serial_number.value
    instrument["software"] = software

    settings: Dict[str, Any] = {"instrument": instrument}
    for parameter_name, key in INSTRUMENT_SETTINGS_FIELDS:
        parameter = find_parameter_deep(parameters, parameter_name)
        if parameter is not None and _is_number(parameter.value):
            settings[key] = parameter.value
    return settings
