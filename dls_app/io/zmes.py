from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Union

from dls_app.engine.plugin_api import Analysis, Spectrum
from dls_app.engine.recipe_model import ConversionOptions
from dls_app.io.zmes_meta import extract_meta, extract_title
from dls_app.io.zmes_settings import extract_settings
from dls_app.io.zmes_tree import coerce_zmes_file
from dls_app.io.zmes_variables import build_variables

DATA_TYPE = "Size measurement"

ZmesParse = Callable[[bytes], Union[Any, Awaitable[Any]]]

logger = logging.getLogger(__name__)


def resolve_parser(spec: str) -> ZmesParse:
    """Import a parser given as ``"module:attribute"``."""

    module_name, _, attribute = spec.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Parser must be given as 'module:attribute', got {spec!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import parser module '{module_name}': {exc}") from exc
    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ValueError(f"Parser '{spec}' not found") from exc
    if not callable(target):
        raise ValueError(f"Parser '{spec}' is not callable")
    return target


async def from_zmes(
    data: bytes | bytearray | memoryview,
    options: Optional[ConversionOptions] = None,
    *,
    parser: ZmesParse,
) -> Analysis:
    """Convert the raw contents of a .zmes file into an ``Analysis``.

    Every record becomes one spectrum whose variables are the size
    distribution arrays found in it (``x`` sizes and ``y`` intensity are
    required, volume/number/molecular weight/diffusion/relaxation/form
    factor are optional). Records without sizes or intensity are skipped.
    Errors raised by ``parser`` are not caught.
    """

    options = options or ConversionOptions()
    analysis = Analysis(**options.analysis_kwargs())

    parsed = parser(bytes(data))
    if inspect.isawaitable(parsed):
        parsed = await parsed
    zmes_file = coerce_zmes_file(parsed)

    for record in zmes_file.records:
        parameters = record.parameters
        variables = build_variables(parameters)
        if variables is None:
            logger.debug("Skipping record %s: sizes or intensity distribution missing", record.guid)
            continue

        analysis.push_spectrum(
            variables,
            id=record.guid,
            title=extract_title(parameters),
            data_type=DATA_TYPE,
            meta=extract_meta(parameters),
            settings=extract_settings(parameters),
        )

    logger.info(
        "Converted %d of %d .zmes records into spectra", len(analysis.spectra), len(zmes_file.records)
    )
    return analysis


def read_zmes(
    path: str | Path,
    *,
    parser: ZmesParse,
    options: Optional[ConversionOptions] = None,
) -> Analysis:
    path = Path(path)
    data = path.read_bytes()
    return asyncio.run(from_zmes(data, options, parser=parser))


def load_zmes_spectra(
    path: str | Path,
    *,
    parser: ZmesParse,
    options: Optional[ConversionOptions] = None,
) -> List[Spectrum]:
    return tag_source_file(read_zmes(path, parser=parser, options=options), path)


def tag_source_file(analysis: Analysis, path: str | Path) -> List[Spectrum]:
    """Copies of the spectra of ``analysis`` with ``meta["source_file"]`` set."""

    return [
        replace(spectrum, meta={**spectrum.meta, "source_file": str(path)})
        for spectrum in analysis.spectra
    ]
