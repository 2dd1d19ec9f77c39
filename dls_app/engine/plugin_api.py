import uuid
from dataclasses import dataclass, field
from typing import Dict, Any, Iterable, List, Optional, Tuple
import numpy as np

@dataclass
class MeasurementVariable:
    symbol: str                     # single letter key, "x" is the independent axis
    label: str
    units: str
    data: np.ndarray
    is_dependent: bool

@dataclass
class Spectrum:
    variables: Dict[str, MeasurementVariable]
    id: str = ""
    title: str = ""
    data_type: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    @property
    def x(self) -> MeasurementVariable:
        return self.variables["x"]

    @property
    def y(self) -> MeasurementVariable:
        return self.variables["y"]

class Analysis:
    """Ordered collection of spectra produced from one source."""

    def __init__(self, id: Optional[str] = None, label: Optional[str] = None):
        self.id = id or uuid.uuid4().hex
        self.label = label or self.id
        self.spectra: List[Spectrum] = []

    def push_spectrum(
        self,
        variables: Dict[str, MeasurementVariable],
        *,
        id: str = "",
        title: str = "",
        data_type: str = "",
        meta: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Spectrum:
        if "x" not in variables or "y" not in variables:
            raise ValueError("A spectrum needs both x and y variables")
        spectrum = Spectrum(
            variables=dict(variables),
            id=id,
            title=title,
            data_type=data_type,
            meta=dict(meta or {}),
            settings=dict(settings or {}),
        )
        self.spectra.append(spectrum)
        return spectrum

    def __len__(self) -> int:
        return len(self.spectra)

@dataclass
class BatchResult:
    processed: List[Spectrum]
    qc_table: List[Dict[str, Any]]
    figures: Dict[str, bytes]       # PNG/SVG bytes
    audit: List[str]
    report_text: Optional[str] = None

class SpectroscopyPlugin:
    id: str = "base"
    label: str = "Base"
    xlabel: str = "x"

    def detect(self, paths: Iterable[str]) -> bool:
        return False

    def load(self, paths: Iterable[str]) -> List[Spectrum]:
        raise NotImplementedError

    def validate(self, specs: List[Spectrum], recipe: Dict[str, Any]) -> List[str]:
        return []

    def preprocess(self, specs: List[Spectrum], recipe: Dict[str, Any]) -> List[Spectrum]:
        return specs

    def analyze(self, specs: List[Spectrum], recipe: Dict[str, Any]) -> Tuple[List[Spectrum], List[Dict[str, Any]]]:
        return specs, []

    def export(self, specs: List[Spectrum], qc: List[Dict[str, Any]], recipe: Dict[str, Any]) -> BatchResult:
        return BatchResult(processed=specs, qc_table=qc, figures={}, audit=[])
