from __future__ import annotations

from pathlib import Path
import json
import tempfile
import textwrap
import unittest

from idfdriver.config_loader import (
    CONFIG_ENV_VAR,
    DriverConfig,
    find_config_file,
    load_config_file,
    load_driver_config,
)
from idfdriver.generators import GeneratorKind, UnknownGeneratorError


class DriverConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.project_dir = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_defaults_without_config_file(self) -> None:
        config = load_driver_config(self.project_dir, env={})
        self.assertEqual(config, DriverConfig())
        self.assertIsNone(config.flash_baud)
        self.assertIsNone(config.monitor_baud)

    def test_reads_toml_driver_section(self) -> None:
        (self.project_dir / "idfdriver.toml").write_text(
            textwrap.dedent(
                """
                [driver]
                build_dir = "out"
                generator = "Unix Makefiles"
                jobs = 4
                ccache = true
                port = "/dev/ttyUSB1"
                flash_baud = 921600
                """
            )
        )
        config = load_driver_config(self.project_dir, env={})
        self.assertEqual(config.build_dir, "out")
        self.assertIs(config.generator, GeneratorKind.MAKE)
        self.assertEqual(config.jobs, 4)
        self.assertTrue(config.ccache)
        self.assertEqual(config.port, "/dev/ttyUSB1")
        self.assertEqual(config.flash_baud, 921600)
        self.assertIsNone(config.monitor_baud)

    def test_supports_json_configs(self) -> None:
        (self.project_dir / "idfdriver.json").write_text(json.dumps({"driver": {"generator": "Ninja"}}))
        config = load_driver_config(self.project_dir, env={})
        self.assertIs(config.generator, GeneratorKind.NINJA)

    def test_supports_yaml_configs(self) -> None:
        (self.project_dir / "idfdriver.yaml").write_text(
            textwrap.dedent(
                """
                driver:
                  monitor_baud: 74880
                  ccache: false
                """
            )
        )
        config = load_driver_config(self.project_dir, env={})
        self.assertEqual(config.monitor_baud, 74880)
        self.assertFalse(config.ccache)

    def test_empty_yaml_is_default(self) -> None:
        path = self.project_dir / "idfdriver.yml"
        path.write_text("")
        self.assertEqual(load_config_file(path), {})

    def test_multiple_formats_are_rejected(self) -> None:
        (self.project_dir / "idfdriver.toml").write_text("[driver]\n")
        (self.project_dir / "idfdriver.json").write_text("{}")
        with self.assertRaises(ValueError) as ctx:
            find_config_file(self.project_dir, env={})
        self.assertIn("Multiple configuration files", str(ctx.exception))

    def test_environment_variable_selects_file(self) -> None:
        path = self.project_dir / "custom.toml"
        path.write_text('[driver]\nport = "COM3"\n')
        (self.project_dir / "idfdriver.toml").write_text('[driver]\nport = "/dev/ttyUSB0"\n')
        config = load_driver_config(self.project_dir, env={CONFIG_ENV_VAR: str(path)})
        self.assertEqual(config.port, "COM3")

    def test_environment_variable_must_exist(self) -> None:
        with self.assertRaises(ValueError):
            find_config_file(self.project_dir, env={CONFIG_ENV_VAR: str(self.project_dir / "missing.toml")})

    def test_unsupported_extension(self) -> None:
        path = self.project_dir / "driver.ini"
        path.write_text("")
        with self.assertRaises(ValueError):
            load_config_file(path)

    def test_missing_file_is_a_value_error(self) -> None:
        path = self.project_dir / "absent.toml"
        with self.assertRaises(ValueError) as ctx:
            load_config_file(path)
        self.assertIn("Could not load configuration file", str(ctx.exception))
        self.assertIn("absent.toml", str(ctx.exception))

    def test_broken_yaml_is_a_value_error(self) -> None:
        path = self.project_dir / "idfdriver.yaml"
        path.write_text("driver: [unclosed\n")
        with self.assertRaises(ValueError) as ctx:
            load_driver_config(self.project_dir, env={})
        self.assertIn("idfdriver.yaml", str(ctx.exception))

    def test_broken_toml_is_a_value_error(self) -> None:
        path = self.project_dir / "idfdriver.toml"
        path.write_text("[driver\n")
        with self.assertRaises(ValueError):
            load_driver_config(self.project_dir, env={})

    def test_root_must_be_mapping(self) -> None:
        path = self.project_dir / "idfdriver.json"
        path.write_text("[1, 2]")
        with self.assertRaises(TypeError):
            load_config_file(path)

    def test_unknown_generator(self) -> None:
        with self.assertRaises(UnknownGeneratorError) as ctx:
            DriverConfig.from_mapping({"driver": {"generator": "ninja"}})
        self.assertIn("configured generator", str(ctx.exception))

    def test_unknown_keys(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            DriverConfig.from_mapping({"driver": {"genrator": "Ninja"}})
        self.assertIn("genrator", str(ctx.exception))

    def test_value_types(self) -> None:
        with self.assertRaises(TypeError):
            DriverConfig.from_mapping({"driver": {"ccache": "yes"}})
        with self.assertRaises(TypeError):
            DriverConfig.from_mapping({"driver": {"jobs": True}})
        with self.assertRaises(ValueError):
            DriverConfig.from_mapping({"driver": {"jobs": 0}})


if __name__ == "__main__":
    unittest.main()
