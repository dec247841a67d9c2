from pathlib import Path

from server.models.docs_config_model import DocsAssistantConfig

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "docs_config.json"


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> DocsAssistantConfig:
    if path.exists():
        return DocsAssistantConfig.model_validate_json(path.read_text())
    raise FileNotFoundError(f"Config file not found: {path}")


def load_config_or_default(path: Path = DEFAULT_CONFIG_PATH) -> DocsAssistantConfig:
    """Load docs_config.json, falling back to model defaults when it is absent."""
    try:
        return load_config(path)
    except FileNotFoundError:
        return DocsAssistantConfig()


def save_config(config: DocsAssistantConfig, path: Path = DEFAULT_CONFIG_PATH) -> None:
    path.write_text(config.model_dump_json(indent=2))


def resolve_data_path(path_str: str) -> Path:
    """Resolve a repo-relative data path (absolute paths pass through)."""
    p = Path(path_str).expanduser()
    if not p.is_absolute():
        p = PROJECT_ROOT / p
    return p
