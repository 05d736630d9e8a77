import configparser
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union, get_args, get_origin

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings


class USERGATE_DIR_PATHS(BaseModel):
    ROOT: str
    LOGGER_DIR: str
    STRUCT_LOGGER_DIR: str


class USERGATE_LOGGER(BaseModel):
    USE_STRUCTLOG: bool = True


def load_ini_as_dict(ini_path: Path) -> Dict[str, Any]:
    """
    Load and parse an INI file into a nested dictionary with normalized keys.

    Sections and keys are converted to uppercase for uniform access. Tilde (`~`)
    in values is expanded to the user home directory.

    Args:
        ini_path (Path): Path to the `.ini` configuration file.

    Returns:
        Dict[str, Any]: A dictionary where each section is a key mapped to another
        dictionary of key-value pairs from that section.

    Example:
        .. code-block:: ini

            [USERGATE_DIR_PATHS]
            LOGGER_DIR = ~/.cache/usergate/logs

        .. code-block:: python

            config = load_ini_as_dict(Path("config.ini"))
            print(config["USERGATE_DIR_PATHS"]["LOGGER_DIR"])
    """
    if not ini_path.exists():
        return {}

    config = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
    config.optionxform = str
    config.read(ini_path)

    result = {}
    for section in config.sections():
        result[section.upper()] = {
            key.upper(): os.path.expanduser(value) if value.startswith("~") else value
            for key, value in config[section].items()
        }
    return result


def load_ini_settings() -> Dict[str, Any]:
    ini_path = Path(__file__).parent / "config.ini"
    return load_ini_as_dict(ini_path)


class CoreSettings(BaseSettings):
    USERGATE_DIR_PATHS: USERGATE_DIR_PATHS
    USERGATE_LOGGER: USERGATE_LOGGER

    model_config = {
        "env_nested_delimiter": "__",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def _expand_tilde(obj):
            if isinstance(obj, str):
                return os.path.expanduser(obj) if obj.startswith("~") else obj
            if isinstance(obj, dict):
                return {k: _expand_tilde(v) for k, v in obj.items()}
            return obj

        def env_settings_expanded():
            return _expand_tilde(env_settings())

        return (
            init_settings,  # constructor kwargs
            env_settings_expanded,  # env vars (with '~' expanded) take precedence
            dotenv_settings,  # then .env
            load_ini_settings,  # then INI file (lowest precedence)
            file_secret_settings,
        )


# Union alias used across core for configuration overrides and settings
SettingsLike = Union[
    Dict[str, Any],
    List[Union[Dict[str, Any], BaseSettings, BaseModel]],
    BaseSettings,
    BaseModel,
    None,
]


class _AttrView:
    """
    Lightweight attribute-access wrapper around a mapping.

    Enables access like obj.SECTION.KEY for nested dictionaries.
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    def __getattr__(self, name: str):
        if name in self._data:
            value = self._data[name]
            if isinstance(value, dict):
                return _AttrView(value)
            return value
        raise AttributeError(f"No such attribute: {name}")

    def __getitem__(self, key: str):
        value = self._data[key]
        if isinstance(value, dict):
            return _AttrView(value)
        return value

    def __repr__(self) -> str:
        return f"_AttrView({self._data!r})"


class Config(dict):
    """
    Unified configuration manager for usergate components.

    The `Config` class consolidates configuration from dictionaries and Pydantic `BaseSettings` or `BaseModel`
    objects, overlays environment variables (`SECTION__KEY`) and masks secret fields.

    Key Features:
    -------------
    - Accepts multiple configuration formats: `dict`, `BaseModel`, `BaseSettings`, or lists of these.
    - Attr-style and dict-style access to nested keys.
    - Secret fields (`pydantic.SecretStr`) are masked; the real value is available through `get_secret`.
    - An environment variable overriding a secret field stays a secret.

    Args:
        extra_settings: Configuration overrides or full config objects.
            Can be a `dict`, `BaseSettings`, `BaseModel`, or list of any of these.

    Example:
        >>> from pydantic import BaseModel, SecretStr
        >>> class Api(BaseModel):
        ...     TOKEN: SecretStr = SecretStr("abc")
        >>> config = Config({"API": Api().model_dump()})
        >>> config.API.TOKEN
        '********'
        >>> config.get_secret("API", "TOKEN")
        'abc'
    """

    MASK = "********"

    def __init__(self, extra_settings: SettingsLike = None, *, apply_env: bool = True):
        self._secret_paths: set[Tuple[str, ...]] = set()
        self._secrets: Dict[Tuple[str, ...], str] = {}

        default_config: Dict[str, Any] = {}
        for override in self._normalize(extra_settings):
            default_config = self._deep_update_dict(default_config, override)

        # Overlay environment variables last so they can override provided settings
        if apply_env:
            default_config = self._apply_env_overrides(default_config)

        super().__init__(self._mask_secrets(default_config))

    def _normalize(self, extra_settings: SettingsLike) -> List[Dict[str, Any]]:
        if extra_settings is None:
            return []
        items = extra_settings if isinstance(extra_settings, list) else [extra_settings]
        converted: List[Dict[str, Any]] = []
        for item in items:
            if isinstance(item, (BaseSettings, BaseModel)):
                self._secret_paths.update(self._collect_secret_paths_from_model(type(item)))
                converted.append(item.model_dump())
            elif isinstance(item, dict):
                converted.append(deepcopy(item))
        return converted

    def __getattr__(self, name: str):
        """Enable attribute-style access for top-level keys."""
        if name in self:
            value = self[name]
            if isinstance(value, dict):
                return _AttrView(value)
            return value
        raise AttributeError(f"No such attribute: {name}")

    @classmethod
    def load(
        cls,
        *,
        defaults: Optional[Union[Dict[str, Any], BaseSettings, BaseModel]] = None,
        overrides: SettingsLike = None,
        file_loader: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> "Config":
        """Create a Config from optional defaults, optional file loader, and runtime overrides.

        Precedence, lowest first: defaults, file loader, environment variables, overrides.
        """
        base: Dict[str, Any] = {}
        if isinstance(defaults, (BaseSettings, BaseModel)):
            base = defaults.model_dump()
        elif isinstance(defaults, dict):
            base = deepcopy(defaults)
        if file_loader is not None:
            base = cls._deep_update_dict(base, file_loader() or {})
        base = cls._apply_env_overrides(base)
        if overrides is not None:
            items = overrides if isinstance(overrides, list) else [overrides]
            for o in items:
                if isinstance(o, (BaseSettings, BaseModel)):
                    o = o.model_dump()
                base = cls._deep_update_dict(base, o)
        # Prevent __init__ from re-applying env so overrides remain highest
        return cls([base], apply_env=False)

    def get_secret(self, *path: str) -> Optional[str]:
        """Retrieve a secret by path components, e.g., get_secret("ACCOUNTS", "ACCESS_TOKEN_SECRET")."""
        return self._secrets.get(tuple(path))

    def secret_paths(self) -> List[str]:
        """Return dotted paths of fields considered secrets."""
        return sorted(".".join(p) for p in self._secrets)

    @staticmethod
    def _deep_update_dict(base: dict, override: dict) -> dict:
        for k, v in (override or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                base[k] = Config._deep_update_dict(base.get(k, {}), v)
            elif isinstance(base.get(k), SecretStr) and not isinstance(v, SecretStr):
                base[k] = SecretStr(str(v))
            else:
                base[k] = v
        return base

    @staticmethod
    def _apply_env_overrides(base: dict, delimiter: str = "__") -> dict:
        result = deepcopy(base)

        def set_nested(target: dict, path: List[str], value: str):
            node = target
            for key in path[:-1]:
                if key not in node or not isinstance(node[key], dict):
                    node[key] = {}
                node = node[key]
            if isinstance(node.get(path[-1]), SecretStr):
                node[path[-1]] = SecretStr(value)
            else:
                node[path[-1]] = Config._coerce_env_value(value)

        for env_key, env_value in os.environ.items():
            if delimiter not in env_key:
                continue
            parts = [p.strip().upper() for p in env_key.split(delimiter) if p.strip()]
            # Only overlay sections the config already knows about
            if len(parts) < 2 or parts[0] not in result:
                continue
            set_nested(result, parts, env_value)

        return result

    @staticmethod
    def _coerce_env_value(value: str) -> Any:
        lower = value.lower()
        if lower in {"true", "false"}:
            return lower == "true"
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        try:
            return float(value)
        except ValueError:
            return value

    def _mask_secrets(self, data: Dict[str, Any]) -> Dict[str, Any]:
        def convert(v: Any, path: Tuple[str, ...]) -> Any:
            if isinstance(v, SecretStr):
                self._secrets[path] = v.get_secret_value()
                return self.MASK
            if isinstance(v, dict):
                return {k: convert(x, path + (k,)) for k, x in v.items()}
            if path in self._secret_paths:
                self._secrets[path] = str(v)
                return self.MASK
            if isinstance(v, str) and v.startswith("~"):
                return os.path.expanduser(v)
            return v

        return convert(data, ())

    def _collect_secret_paths_from_model(
        self, model_cls: type[BaseModel], prefix: Tuple[str, ...] = ()
    ) -> set[Tuple[str, ...]]:
        paths: set[Tuple[str, ...]] = set()
        for name, field in getattr(model_cls, "model_fields", {}).items():
            ann = field.annotation
            if ann is SecretStr or (get_origin(ann) is Union and SecretStr in get_args(ann)):
                paths.add(prefix + (name,))
            elif isinstance(ann, type) and issubclass(ann, BaseModel):
                paths.update(self._collect_secret_paths_from_model(ann, prefix + (name,)))
        return paths


class CoreConfig(Config):
    """
    Wrapper around `Config` that always includes `CoreSettings` by default.

    Usage:
        from usergate.core.config import CoreConfig
        cfg = CoreConfig()  # loads CoreSettings (env + .env + INI with '~' expansion)

    Extra overrides are applied on top of CoreSettings. Env is not re-applied at the Config layer.
    """

    def __init__(self, extra_settings: SettingsLike = None):
        if extra_settings is None:
            extras: List[Any] = [CoreSettings()]
        elif isinstance(extra_settings, list):
            extras = [CoreSettings()] + extra_settings
        else:
            extras = [CoreSettings(), extra_settings]
        super().__init__(extras, apply_env=False)
