import os
import unittest
from unittest import mock
from pathlib import Path
import tempfile

from config.manager import EnvironmentManager
from config.types import ToolConfig, DecompilerPreferences


class TestEnvironmentManager(unittest.TestCase):
    """Test cases for the EnvironmentManager class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.env_manager = EnvironmentManager(use_os_environ=False)

    def tearDown(self):
        """Clean up after tests."""
        import shutil

        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def create_env_file(self, content):
        """Create a temporary .env file with the given content."""
        env_file = Path(self.temp_dir) / ".env"
        env_file.write_text(content)
        return env_file

    def test_initialization(self):
        """Test that EnvironmentManager initializes with defaults."""
        self.assertIsInstance(self.env_manager.settings, dict)
        self.assertEqual(self.env_manager.settings["default_decompiler"], "ghidra")
        self.assertEqual(self.env_manager.settings["java_decompiler"], "jadx")
        self.assertIsNone(self.env_manager.settings["ghidra_path"])
        self.assertTrue(self.env_manager.settings["kill_on_cancel"])

    def test_instances_are_independent(self):
        """Test that two managers do not share settings."""
        other = EnvironmentManager(use_os_environ=False)
        other.settings["ghidra_path"] = "/opt/ghidra"

        self.assertIsNot(self.env_manager, other)
        self.assertIsNone(self.env_manager.settings["ghidra_path"])

    def test_parse_env_file(self):
        """Test parsing an environment file."""
        env_content = """
        # Test environment file
        GHIDRA_PATH=/opt/ghidra/support/analyzeHeadless
        JAVA_DECOMPILER=jd-cli
        JADX_PROGRESS_INCREMENT=12.5
        KILL_ON_CANCEL=false
        UNRELATED_KEY=value
        """
        env_file = self.create_env_file(env_content)

        self.env_manager._parse_env_file(env_file)

        self.assertEqual(
            self.env_manager.settings["ghidra_path"],
            "/opt/ghidra/support/analyzeHeadless",
        )
        self.assertEqual(self.env_manager.settings["java_decompiler"], "jd-cli")
        self.assertEqual(self.env_manager.settings["jadx_progress_increment"], 12.5)
        self.assertFalse(self.env_manager.settings["kill_on_cancel"])
        self.assertEqual(self.env_manager.env_variables["UNRELATED_KEY"], "value")

    def test_parse_env_file_with_quotes(self):
        """Test parsing an environment file with quoted values."""
        env_file = self.create_env_file('IDA_PATH="/path/with spaces/idat64"\n')

        self.env_manager._parse_env_file(env_file)

        self.assertEqual(
            self.env_manager.settings["ida_path"], "/path/with spaces/idat64"
        )

    def test_invalid_value_is_ignored(self):
        """Test that an unparsable number keeps the default."""
        env_file = self.create_env_file("JDCLI_PROGRESS_INCREMENT=lots\n")

        self.env_manager._parse_env_file(env_file)

        self.assertEqual(self.env_manager.settings["jdcli_progress_increment"], 4.0)

    def test_load_explicit_env_file(self):
        """Test loading settings from an explicit env file."""
        env_file = self.create_env_file("APK_DECOMPILER=jd-cli\n")
        manager = EnvironmentManager(env_file=str(env_file), use_os_environ=False)

        manager.load()

        self.assertEqual(manager.get_setting("apk_decompiler"), "jd-cli")
        self.assertEqual(manager.loaded_env_file, env_file)

    def test_load_from_os_environment(self):
        """Test that OS environment variables override the env file."""
        env_file = self.create_env_file("DEFAULT_DECOMPILER=ghidra\n")
        manager = EnvironmentManager(env_file=str(env_file))

        with mock.patch.dict(os.environ, {"DEFAULT_DECOMPILER": "idaPro"}):
            manager.load()

        self.assertEqual(manager.get_setting("default_decompiler"), "idaPro")

    def test_get_tool_config(self):
        """Test the per-tool configuration snapshot."""
        self.env_manager.settings["jadx_path"] = "/opt/jadx/bin/jadx"

        config = self.env_manager.get_tool_config("jadx")

        self.assertIsInstance(config, ToolConfig)
        self.assertEqual(config.tool_id, "jadx")
        self.assertEqual(config.path, "/opt/jadx/bin/jadx")
        self.assertIsNone(self.env_manager.get_tool_config("ghidra").path)

    def test_get_tool_config_unknown_tool(self):
        """Test that unknown tools are rejected."""
        with self.assertRaises(KeyError):
            self.env_manager.get_tool_config("radare2")

    def test_get_preferences(self):
        """Test reading backend preferences."""
        self.env_manager.settings["default_decompiler"] = "idaPro64"
        self.env_manager.settings["apk_decompiler"] = "jd-cli"

        prefs = self.env_manager.get_preferences()

        self.assertIsInstance(prefs, DecompilerPreferences)
        self.assertTrue(prefs.prefers_ida)
        self.assertTrue(prefs.apk_prefers_jdcli)
        self.assertFalse(prefs.java_prefers_jdcli)

    def test_persist_tool_path_in_memory(self):
        """Test that persisting without an env file only updates settings."""
        self.env_manager.persist_tool_path("ghidra", "/opt/ghidra/support/analyzeHeadless")

        self.assertEqual(
            self.env_manager.get_setting("ghidra_path"),
            "/opt/ghidra/support/analyzeHeadless",
        )

    def test_persist_tool_path_rewrites_env_file(self):
        """Test that persisting rewrites the loaded env file."""
        env_file = self.create_env_file("GHIDRA_PATH=\nJAVA_DECOMPILER=jadx\n")
        manager = EnvironmentManager(env_file=str(env_file), use_os_environ=False)
        manager.load()

        manager.persist_tool_path("ghidra", "/opt/ghidra/support/analyzeHeadless")

        content = env_file.read_text()
        self.assertIn("GHIDRA_PATH=/opt/ghidra/support/analyzeHeadless", content)
        self.assertIn("JAVA_DECOMPILER=jadx", content)
        self.assertEqual(content.count("GHIDRA_PATH="), 1)

    def test_persist_tool_path_appends_missing_key(self):
        """Test that persisting appends a line when the key is absent."""
        env_file = self.create_env_file("JAVA_DECOMPILER=jadx\n")
        manager = EnvironmentManager(env_file=str(env_file), use_os_environ=False)
        manager.load()

        manager.persist_tool_path("ghidra", "/usr/share/ghidra/support/analyzeHeadless")

        self.assertTrue(
            env_file.read_text().endswith(
                "GHIDRA_PATH=/usr/share/ghidra/support/analyzeHeadless\n"
            )
        )


if __name__ == "__main__":
    unittest.main()
