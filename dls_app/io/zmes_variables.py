from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from dls_app.engine.plugin_api import MeasurementVariable
from dls_app.io.zmes_tree import ZmesParameter, find_parameter_deep


@dataclass(frozen=True)
class VariableDescriptor:
    parameter_name: str
    symbol: str
    label: str
    units: str
    is_dependent: bool


VARIABLE_DESCRIPTORS: Tuple[VariableDescriptor, ...] = (
    VariableDescriptor("Sizes", "x", "Particle diameter", "nm", False),
    VariableDescriptor("Particle Size Intensity Distribution", "y", "Intensity", "%", True),
    VariableDescriptor("Particle Size Volume Distribution (%)", "v", "Volume", "%", True),
    VariableDescriptor("Particle Size Number Distribution", "n", "Number", "%", True),
    VariableDescriptor("Molecular Weights", "w", "Molecular weight", "Da", True),
    VariableDescriptor("Diffusion Coefficients", "d", "Diffusion coefficient", "µm²/s", True),
    VariableDescriptor("Relaxation Times", "r", "Relaxation time", "µs", True),
    VariableDescriptor("Form Factor", "f", "Form factor", "", True),
)

REQUIRED_SYMBOLS = ("x", "y")


def is_float_array(value: Any) -> bool:
    return isinstance(value, np.ndarray) and np.issubdtype(value.dtype, np.floating)


def build_variables(parameters: ZmesParameter) -> Optional[Dict[str, MeasurementVariable]]:
    """Collect the size distribution arrays of one record.

    Returns ``None`` when the sizes (``x``) or the intensity distribution
    (``y``) is missing; the other variables are included only when present
    as floating point arrays.
    """

    found: Dict[str, MeasurementVariable] = {}
    for descriptor in VARIABLE_DESCRIPTORS:
        parameter = find_parameter_deep(parameters, descriptor.parameter_name)
        if parameter is None or not is_float_array(parameter.value):
            continue
        found[descriptor.symbol] = MeasurementVariable(
            symbol=descriptor.symbol,
            label=descriptor.label,
            units=descriptor.units,
            data=parameter.value,
            is_dependent=descriptor.is_dependent,
        )

    if any(symbol not in found for symbol in REQUIRED_SYMBOLS):
        return None

    variables = {symbol: found[symbol] for symbol in REQUIRED_SYMBOLS}
    for symbol, variable in found.items():
        variables.setdefault(symbol, variable)
    return variables
