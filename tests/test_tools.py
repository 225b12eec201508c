from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from idfdriver.environment import IdfEnvironment
from idfdriver.tools import (
    SizeReport,
    find_elf,
    plan_app_flash,
    plan_bootloader_flash,
    plan_erase_flash,
    plan_monitor,
    plan_size,
)


class ToolPlanTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.idf_path = self.root / "esp-idf"
        self.project_dir = self.root / "blink"
        self.build_dir = self.project_dir / "build"
        self.build_dir.mkdir(parents=True)
        self.idf = IdfEnvironment({"IDF_PATH": str(self.idf_path)})
        self.esptool = str(self.idf_path / "components" / "esptool_py" / "esptool" / "esptool.py")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_app_flash(self) -> None:
        plan = plan_app_flash(
            self.idf,
            project_dir=self.project_dir,
            build_dir=self.build_dir,
            app_name="blink",
            baud=460800,
            port="/dev/ttyUSB0",
            force=True,
            trace=True,
            extra_args=["--no-stub"],
        )
        self.assertEqual(plan.program, "python3")
        self.assertEqual(
            plan.args,
            (
                self.esptool,
                "--chip",
                "auto",
                "--baud",
                "460800",
                "--port",
                "/dev/ttyUSB0",
                "--trace",
                "write_flash",
                "--force",
                "--no-stub",
                "0x10000",
                str(self.build_dir / "blink.bin"),
            ),
        )

    def test_bootloader_flash_without_port(self) -> None:
        plan = plan_bootloader_flash(self.idf, project_dir=self.project_dir, build_dir=self.build_dir, baud=115200)
        self.assertNotIn("--port", plan.args)
        self.assertEqual(plan.args[-3:], ("write_flash", "0x1000", str(self.build_dir / "bootloader" / "bootloader.bin")))

    def test_erase_flash(self) -> None:
        plan = plan_erase_flash(self.idf, project_dir=self.project_dir, baud=460800)
        self.assertEqual(plan.args[-1], "erase_flash")

    def test_monitor(self) -> None:
        elf_file = self.build_dir / "blink.elf"
        plan = plan_monitor(
            self.idf,
            project_dir=self.project_dir,
            baud=115200,
            port="/dev/ttyACM0",
            elf_file=elf_file,
            extra_args=["--print_filter", "*:I"],
        )
        self.assertEqual(
            plan.args,
            (
                str(self.idf_path / "tools" / "idf_monitor.py"),
                "--port",
                "/dev/ttyACM0",
                "--baud",
                "115200",
                str(elf_file),
                "--print_filter",
                "*:I",
            ),
        )

    def test_uses_idf_python_environment(self) -> None:
        python = self.root / "venv" / "bin" / "python"
        python.parent.mkdir(parents=True)
        python.write_text("")
        idf = IdfEnvironment({"IDF_PATH": str(self.idf_path), "IDF_PYTHON_ENV_PATH": str(self.root / "venv")})
        plan = plan_erase_flash(idf, project_dir=self.project_dir, baud=460800)
        self.assertEqual(plan.program, str(python))

    def test_missing_idf_path_raises(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            plan_erase_flash(IdfEnvironment({}), project_dir=self.project_dir, baud=460800)
        self.assertIn("IDF_PATH", str(ctx.exception))


class SizePlanTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.build_dir = self.root / "build"
        self.idf = IdfEnvironment({"IDF_PATH": str(self.root / "esp-idf")})

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_missing_build_dir(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            find_elf(self.build_dir)
        self.assertIn("Run 'build' command first", str(ctx.exception))

    def test_no_elf_files(self) -> None:
        self.build_dir.mkdir()
        (self.build_dir / "blink.bin").write_text("")
        with self.assertRaises(ValueError):
            find_elf(self.build_dir)

    def test_size_reports(self) -> None:
        self.build_dir.mkdir()
        (self.build_dir / "zeta.elf").write_text("")
        (self.build_dir / "blink.elf").write_text("")
        elf_file = str(self.build_dir / "blink.elf")
        expectations = {
            SizeReport.SUMMARY: (elf_file,),
            SizeReport.COMPONENTS: ("--archives", elf_file),
            SizeReport.FILES: ("--files", elf_file),
        }
        for report, tail in expectations.items():
            with self.subTest(report=report):
                plan = plan_size(self.idf, report, project_dir=self.root, build_dir=self.build_dir)
                self.assertTrue(plan.args[0].endswith("idf_size.py"))
                self.assertEqual(plan.args[1:], tail)


if __name__ == "__main__":
    unittest.main()
