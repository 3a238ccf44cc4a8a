"""Runtime wiring helper for CLI applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.idgen import HexId
from .config import ScrivportConfig, load_config
from .log import configure_logging
from .scrivener.importer import ScrivenerImporter
from .scrivener.markdown import RtfToMarkdownConverter


@dataclass
class Runtime:
    """Container for all wired components."""
    importer: ScrivenerImporter
    idgen: HexId
    config: ScrivportConfig


def build_runtime(
    config_path: Path | None = None,
    bundle_path: Path | None = None,
    log_level: str | None = None,
) -> Runtime:
    """Build and wire all components for one CLI invocation."""
    config = load_config(config_path=config_path, bundle_path=bundle_path)

    configure_logging(level=log_level or config.log.level, json_output=config.log.json)

    idgen = HexId(nbytes=config.id.bytes)
    importer = ScrivenerImporter(idgen=idgen, converter=RtfToMarkdownConverter())

    return Runtime(
        importer=importer,
        idgen=idgen,
        config=config,
    )
