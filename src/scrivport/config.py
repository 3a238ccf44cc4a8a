"""Configuration loader for scrivport.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from .scrivener.models import ImportOptions

CONFIG_FILENAME = "scrivport.toml"


@dataclass
class ImportConfig:
    """Default import switches."""
    research: bool = True
    trash: bool = False
    snapshots: bool = True
    preserve_ids: bool = False

    def options(self) -> ImportOptions:
        return ImportOptions(
            import_research=self.research,
            import_trash=self.trash,
            import_snapshots=self.snapshots,
            preserve_source_ids=self.preserve_ids,
        )


@dataclass
class IdConfig:
    """ID generation configuration."""
    bytes: int = 6


@dataclass
class OutputConfig:
    """Where imported projects are written."""
    dir: Path = Path("imported")


@dataclass
class LogConfig:
    level: str = "WARNING"
    json: bool = False


@dataclass
class ScrivportConfig:
    """Complete scrivport configuration."""
    import_: ImportConfig = field(default_factory=ImportConfig)
    id: IdConfig = field(default_factory=IdConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
    source: Path | None = None


def load_config(config_path: Path | None = None, bundle_path: Path | None = None) -> ScrivportConfig:
    """
    Load configuration from scrivport.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/scrivport.toml
    3. the directory containing the bundle

    Args:
        config_path: Explicit path to config file
        bundle_path: Scrivener bundle being worked on, for fallback search

    Returns:
        ScrivportConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}
    source = None

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_FILENAME)
    if bundle_path:
        search_paths.append(bundle_path.absolute().parent / CONFIG_FILENAME)

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            source = path
            break

    import_data = toml_data.get("import", {})
    import_config = ImportConfig(
        research=bool(import_data.get("research", True)),
        trash=bool(import_data.get("trash", False)),
        snapshots=bool(import_data.get("snapshots", True)),
        preserve_ids=bool(import_data.get("preserve_ids", False)),
    )

    id_data = toml_data.get("id", {})
    id_config = IdConfig(
        bytes=int(id_data.get("bytes", 6))
    )

    output_data = toml_data.get("output", {})
    output_config = OutputConfig(
        dir=Path(output_data.get("dir", "imported"))
    )

    log_data = toml_data.get("log", {})
    log_config = LogConfig(
        level=str(log_data.get("level", "WARNING")),
        json=bool(log_data.get("json", False)),
    )

    return ScrivportConfig(
        import_=import_config,
        id=id_config,
        output=output_config,
        log=log_config,
        source=source,
    )
