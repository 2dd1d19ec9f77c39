from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

EXPORT_LAYOUTS = ("tidy", "wide")

@dataclass
class ConversionOptions:
    id: Optional[str] = None
    label: Optional[str] = None
    parser: Optional[str] = None        # "module:attribute" of the .zmes byte parser
    export_layout: str = "tidy"
    version: str = "0.1.0"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConversionOptions":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def analysis_kwargs(self) -> Dict[str, Optional[str]]:
        return {"id": self.id, "label": self.label}

    def validate(self) -> list[str]:
        errs = []
        for key in ("id", "label"):
            value = getattr(self, key)
            if value is not None and not isinstance(value, str):
                errs.append(f"Analysis {key} must be a string")
        if self.parser is not None:
            if not isinstance(self.parser, str) or ":" not in self.parser:
                errs.append("Parser must be given as 'module:attribute'")
        if self.export_layout not in EXPORT_LAYOUTS:
            errs.append(f"Export layout must be one of: {', '.join(EXPORT_LAYOUTS)}")
        return errs


def load_options(path: str | Path) -> ConversionOptions:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(content, dict):
        raise ValueError(f"Options file {path} must contain a mapping")
    return ConversionOptions.from_mapping(content)
