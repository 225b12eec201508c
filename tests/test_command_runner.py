from __future__ import annotations

from pathlib import Path
import os
import unittest
from unittest.mock import patch

from idfdriver.command_runner import (
    CommandError,
    CommandResult,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    format_command,
)
from idfdriver.planner import InvocationPlan


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_records_plans_with_environment(self) -> None:
        runner = RecordingCommandRunner()
        plan = InvocationPlan(
            "ninja",
            ("-C", "/work/build", "flash"),
            Path("/work"),
            {"ESPPORT": "/dev/ttyUSB0"},
            "Flash project",
        )
        result = runner.run_plan(plan)
        self.assertEqual(result.returncode, 0)
        self.assertEqual(runner.commands[0].command, ["ninja", "-C", "/work/build", "flash"])
        self.assertEqual(
            list(runner.iter_formatted()),
            ["[dry-run] Flash project (cwd=/work) ESPPORT=/dev/ttyUSB0 ninja -C /work/build flash"],
        )

    def test_format_command_quotes_spaces(self) -> None:
        self.assertEqual(format_command(["cmake", "-G", "Unix Makefiles"]), "cmake -G 'Unix Makefiles'")


class SubprocessCommandRunnerTests(unittest.TestCase):
    def test_non_zero_exit_raises(self) -> None:
        runner = SubprocessCommandRunner()
        completed = type("Completed", (), {"returncode": 3, "stdout": "", "stderr": "boom"})()
        with patch("idfdriver.command_runner.subprocess.run", return_value=completed):
            with self.assertRaises(CommandError) as ctx:
                runner.run(["ninja", "all"], capture=True)
        self.assertEqual(ctx.exception.result.returncode, 3)
        self.assertIn("boom", str(ctx.exception))

    def test_missing_program(self) -> None:
        runner = SubprocessCommandRunner()
        error = FileNotFoundError(2, "No such file", "ninja")
        with patch("idfdriver.command_runner.subprocess.run", side_effect=error):
            with self.assertRaises(CommandError) as ctx:
                runner.run(["ninja", "all"])
        self.assertEqual(ctx.exception.result.returncode, 127)

    def test_environment_overlay_is_merged(self) -> None:
        runner = SubprocessCommandRunner()
        completed = type("Completed", (), {"returncode": 0, "stdout": None, "stderr": None})()
        with patch.dict(os.environ, {"IDFDRIVER_TEST_MARKER": "1"}):
            with patch("idfdriver.command_runner.subprocess.run", return_value=completed) as run:
                result = runner.run(["ninja", "flash"], env={"ESPBAUD": "921600"})
        env = run.call_args.kwargs["env"]
        self.assertEqual(env["ESPBAUD"], "921600")
        self.assertEqual(env["IDFDRIVER_TEST_MARKER"], "1")
        self.assertIsInstance(result, CommandResult)
        self.assertTrue(result.streamed)


if __name__ == "__main__":
    unittest.main()
