from pathlib import Path
from typing import Dict, Any, Optional, List
from config.types import ToolConfig, DecompilerPreferences, WorkspaceSettings
import logging
import os


PACKAGE_ROOT = Path(__file__).resolve().parent.parent / "decompile_tools"


class EnvironmentManager:
    """
    Settings store for the decompiler engine.

    Values come from ``DEFAULT_SETTINGS``, then from the first ``.env`` file
    found, then from upper-cased OS environment variables. Instances are
    passed explicitly to the components that need them; the only write the
    engine performs is :meth:`persist_tool_path`.
    """

    # List of all settings that are paths
    PATH_SETTINGS = [
        "ghidra_path",
        "ida_path",
        "jdcli_path",
        "jadx_path",
        "dex2jar_path",
        "bundled_tools_root",
        "tool_scripts_root",
        "workspace_root",
    ]

    # Default settings with their types
    DEFAULT_SETTINGS = {
        # Explicit tool binaries
        "ghidra_path": (None, str),
        "ida_path": (None, str),
        "jdcli_path": (None, str),
        "jadx_path": (None, str),
        "dex2jar_path": (None, str),
        # Backend selection per artifact kind
        "default_decompiler": ("ghidra", str),
        "java_decompiler": ("jadx", str),
        "apk_decompiler": ("jadx", str),
        # Bundled resources
        "bundled_tools_root": (str(PACKAGE_ROOT / "bundled_tools"), str),
        "tool_scripts_root": (str(PACKAGE_ROOT / "tool_scripts"), str),
        # Progress
        "jdcli_progress_increment": (4.0, float),
        "jadx_progress_increment": (20.0, float),
        # Workspaces
        "workspace_root": (None, str),
        "workspace_cleanup_retry_attempts": (3, int),
        "workspace_cleanup_retry_delay": (0.5, float),
        # Cancellation
        "kill_on_cancel": (True, bool),
        # Virtual filesystem
        "virtual_fs_scheme": ("decompileFs", str),
    }

    # Tool identifiers mapped to the setting holding their binary path
    TOOL_PATH_SETTINGS = {
        "ghidra": "ghidra_path",
        "ida": "ida_path",
        "jd-cli": "jdcli_path",
        "jadx": "jadx_path",
        "dex2jar": "dex2jar_path",
    }

    # Create mapping dynamically - each setting can be set via its uppercase env var
    ENV_MAPPING = {setting.upper(): setting for setting in DEFAULT_SETTINGS.keys()}

    def __init__(self, env_file: Optional[str] = None, use_os_environ: bool = True):
        self.logger = logging.getLogger(__name__)
        self.explicit_env_file = Path(env_file) if env_file else None
        self.use_os_environ = use_os_environ
        self._initialize()

    def _initialize(self):
        """Initialize settings with default values"""
        self.env_variables: Dict[str, str] = {}
        self.settings: Dict[str, Any] = {}
        self.loaded_env_file: Optional[Path] = None

        for key, (default_value, _) in self.DEFAULT_SETTINGS.items():
            self.settings[key] = default_value

    def _get_git_root(self) -> Optional[Path]:
        """Try to determine the git root directory

        Returns:
            Path to the git root directory or None if not found
        """
        current_dir = Path.cwd()

        dir_to_check = current_dir
        for _ in range(10):  # Limit the search depth
            git_dir = dir_to_check / ".git"
            if git_dir.exists() and git_dir.is_dir():
                return dir_to_check

            parent_dir = dir_to_check.parent
            if parent_dir == dir_to_check:  # Reached the root
                break
            dir_to_check = parent_dir

        return None

    def _convert_value(self, value: str, target_type: type) -> Any:
        """Convert string value to target type"""
        if target_type == bool:
            return value.lower() in ("true", "1", "yes", "on")
        return target_type(value)

    def _set_from_string(self, setting_name: str, value: str) -> None:
        _, target_type = self.DEFAULT_SETTINGS[setting_name]
        try:
            self.settings[setting_name] = self._convert_value(value, target_type)
        except ValueError:
            self.logger.warning(
                f"Ignoring invalid value for {setting_name}: {value!r}"
            )

    def _candidate_env_files(self) -> List[Path]:
        if self.explicit_env_file:
            return [self.explicit_env_file]

        env_file_paths = [Path.cwd() / ".env"]

        # Try additional common locations - safely handle home directory
        try:
            env_file_paths.append(Path.home() / ".env")
        except (RuntimeError, OSError):
            pass

        git_root = self._get_git_root()
        if git_root:
            env_file_paths.append(git_root / ".env")

        module_template = Path(__file__).parent / "templates" / "env.template"
        env_file_paths.append(module_template)
        return env_file_paths

    def _load_from_env_file(self):
        """Find and load variables from the first .env file found"""
        for env_path in self._candidate_env_files():
            if env_path.exists() and env_path.is_file():
                self.logger.debug(f"Loading environment from: {env_path}")
                self._parse_env_file(env_path)
                # Templates are read-only, never persist into them
                if env_path.name != "env.template":
                    self.loaded_env_file = env_path
                return

        self.logger.debug("No .env file found, using default settings")

    def _parse_env_file(self, env_file_path: Path):
        """Parse a .env file and load mapped variables into settings"""
        with open(env_file_path, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()

                    # Remove quotes if present
                    if (value.startswith('"') and value.endswith('"')) or (
                        value.startswith("'") and value.endswith("'")
                    ):
                        value = value[1:-1]

                    self.env_variables[key] = value

                    if key in self.ENV_MAPPING and value:
                        self._set_from_string(self.ENV_MAPPING[key], value)

    def load(self) -> "EnvironmentManager":
        """Load all environment information"""
        self._initialize()
        self._load_from_env_file()

        if self.use_os_environ:
            for key, value in os.environ.items():
                if key in self.ENV_MAPPING and value:
                    self._set_from_string(self.ENV_MAPPING[key], value)

        for key in self.PATH_SETTINGS:
            value = self.settings.get(key)
            if value:
                self.settings[key] = str(Path(value).expanduser())

        return self

    def get_setting(self, name: str, default: Any = None) -> Any:
        """Get a setting value by name"""
        value = self.settings.get(name)
        return default if value is None else value

    def get_tool_config(self, tool_id: str) -> ToolConfig:
        """Get a snapshot of the configuration for one tool"""
        setting_name = self.TOOL_PATH_SETTINGS.get(tool_id)
        if setting_name is None:
            raise KeyError(f"Unknown tool: {tool_id}")
        return ToolConfig(tool_id=tool_id, path=self.settings.get(setting_name) or None)

    def get_preferences(self) -> DecompilerPreferences:
        return DecompilerPreferences(
            default_decompiler=self.get_setting("default_decompiler", "ghidra"),
            java_decompiler=self.get_setting("java_decompiler", "jadx"),
            apk_decompiler=self.get_setting("apk_decompiler", "jadx"),
        )

    def get_workspace_settings(self) -> WorkspaceSettings:
        return WorkspaceSettings(
            root=self.settings.get("workspace_root"),
            cleanup_retry_attempts=self.get_setting("workspace_cleanup_retry_attempts", 3),
            cleanup_retry_delay=self.get_setting("workspace_cleanup_retry_delay", 0.5),
        )

    def persist_tool_path(self, tool_id: str, path: str) -> None:
        """Remember an auto-detected tool path so future lookups skip detection.

        The in-memory setting is always updated. When settings were loaded from
        a user ``.env`` file the matching line is rewritten (or appended) there.
        """
        setting_name = self.TOOL_PATH_SETTINGS[tool_id]
        self.settings[setting_name] = path
        self.logger.info(f"updated setting: {setting_name}={path}")

        if not self.loaded_env_file:
            return

        env_key = setting_name.upper()
        lines = self.loaded_env_file.read_text().splitlines()
        replaced = False
        for index, line in enumerate(lines):
            if line.strip().startswith(f"{env_key}="):
                lines[index] = f"{env_key}={path}"
                replaced = True
        if not replaced:
            lines.append(f"{env_key}={path}")
        self.loaded_env_file.write_text("\n".join(lines) + "\n")


# Default instance for the CLI and the tool surface
env_manager = EnvironmentManager()
