import logging
from typing import Any, Dict, Optional

from dls_app.engine.audit import log_step, start_audit
from dls_app.engine.plugin_api import SpectroscopyPlugin, Spectrum, BatchResult
from dls_app.engine.recipe_model import ConversionOptions
from dls_app.io.zmes import ZmesParse, read_zmes, resolve_parser, tag_source_file

logger = logging.getLogger(__name__)

GOOD_QUALITY = "GoodData"
COMPLETED_STATE = "Completed"


class DlsPlugin(SpectroscopyPlugin):
    id = "dls"
    label = "DLS"
    xlabel = "Particle diameter (nm)"

    def __init__(self, parser: Optional[ZmesParse] = None, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()
        self._parser = parser
        self.audit = start_audit(f"DLS conversion {self.options.version}")

    @property
    def parser(self) -> ZmesParse:
        if self._parser is None:
            if not self.options.parser:
                raise ValueError("No .zmes parser configured")
            self._parser = resolve_parser(self.options.parser)
        return self._parser

    def detect(self, paths):
        return any(str(p).lower().endswith(".zmes") for p in paths)

    def load(self, paths):
        spectra = []
        for path in paths:
            try:
                analysis = read_zmes(path, parser=self.parser, options=self.options)
            except Exception:
                logger.exception("Failed to convert %s", path)
                raise
            loaded = tag_source_file(analysis, path)
            log_step(
                self.audit,
                f"Loaded {len(loaded)} spectra from {path} into analysis {analysis.id} ({analysis.label})",
            )
            spectra.extend(loaded)
        return spectra

    def validate(self, specs, recipe):
        errs = list(self.options.validate())
        for spec in specs:
            missing = [symbol for symbol in ("x", "y") if symbol not in spec.variables]
            if missing:
                errs.append(f"Spectrum {spec.id or spec.title!r} lacks variables: {', '.join(missing)}")
        return errs

    def _qc_row(self, spec: Spectrum) -> Dict[str, Any]:
        meta = spec.meta
        flags = []
        quality = meta.get("qualityIndicator")
        if quality is not None and quality != GOOD_QUALITY:
            flags.append(f"quality:{quality}")
        state = meta.get("resultState")
        if state is not None and state != COMPLETED_STATE:
            flags.append(f"state:{state}")
        return {
            "id": spec.id,
            "title": spec.title,
            "z_average_nm": meta.get("zAverage"),
            "polydispersity_index": meta.get("polydispersityIndex"),
            "quality_indicator": quality,
            "result_state": state,
            "variables": len(spec.variables),
            "flags": flags,
        }

    def analyze(self, specs, recipe):
        qc_rows = [self._qc_row(spec) for spec in specs]
        flagged = sum(1 for row in qc_rows if row["flags"])
        log_step(self.audit, f"QC: {flagged} of {len(qc_rows)} spectra flagged")
        return specs, qc_rows

    def export(self, specs, qc, recipe):
        log_step(self.audit, f"Exported {len(specs)} spectra")
        return BatchResult(
            processed=specs,
            qc_table=qc,
            figures={},
            audit=list(self.audit),
            report_text=None,
        )
