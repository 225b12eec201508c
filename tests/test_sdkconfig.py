from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from idfdriver.sdkconfig import SUPPORTED_TARGETS, SdkConfig, sdkconfig_path, validate_target


class SdkConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.project_dir = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_parse_skips_comments(self) -> None:
        config = SdkConfig.parse(
            textwrap.dedent(
                """
                # Automatically generated file
                CONFIG_IDF_TARGET="esp32s3"
                # CONFIG_FOO is not set
                CONFIG_BAR=y
                """
            )
        )
        self.assertEqual(config.settings, {"CONFIG_IDF_TARGET": '"esp32s3"', "CONFIG_BAR": "y"})
        self.assertEqual(config.target, "esp32s3")

    def test_load_missing_file(self) -> None:
        config = SdkConfig.load(sdkconfig_path(self.project_dir))
        self.assertEqual(config.settings, {})
        self.assertIsNone(config.target)

    def test_save_writes_sorted_settings(self) -> None:
        path = sdkconfig_path(self.project_dir)
        config = SdkConfig({"CONFIG_ZED": "1"})
        config.set_target("esp32c3")
        config.save(path)
        self.assertEqual(
            path.read_text(),
            '# ESP-IDF Configuration\n\nCONFIG_IDF_TARGET="esp32c3"\nCONFIG_ZED=1\n',
        )
        self.assertEqual(SdkConfig.load(path).target, "esp32c3")

    def test_validate_target(self) -> None:
        for target in SUPPORTED_TARGETS:
            self.assertEqual(validate_target(target), target)
        with self.assertRaises(ValueError) as ctx:
            validate_target("esp8266")
        self.assertIn("Unsupported target: esp8266", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
