from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from idfdriver.scaffold import PROJECT_FILES, TemplateError, create_project, render_template


class RenderTemplateTests(unittest.TestCase):
    def test_replaces_placeholders(self) -> None:
        context = {"project": {"name": "blink"}}
        self.assertEqual(render_template("project({{ project.name }})", context), "project(blink)")

    def test_unknown_variable(self) -> None:
        with self.assertRaises(TemplateError):
            render_template("{{project.version}}", {"project": {"name": "blink"}})

    def test_leaves_cmake_variables_alone(self) -> None:
        text = "include($ENV{IDF_PATH}/tools/cmake/project.cmake)"
        self.assertEqual(render_template(text, {}), text)


class CreateProjectTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.parent = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_creates_project_files(self) -> None:
        project_dir = create_project("blink", self.parent)
        self.assertEqual(project_dir, self.parent / "blink")
        for relative in PROJECT_FILES:
            self.assertTrue((project_dir / relative).is_file(), relative)
        cmakelists = (project_dir / "CMakeLists.txt").read_text()
        self.assertIn("project(blink)", cmakelists)
        self.assertIn("$ENV{IDF_PATH}", cmakelists)
        self.assertIn("idfdriver build", (project_dir / "README.md").read_text())

    def test_refuses_existing_directory(self) -> None:
        (self.parent / "blink").mkdir()
        with self.assertRaises(ValueError) as ctx:
            create_project("blink", self.parent)
        self.assertIn("already exists", str(ctx.exception))

    def test_rejects_path_like_names(self) -> None:
        for name in ("", "a/b", "  "):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    create_project(name, self.parent)


if __name__ == "__main__":
    unittest.main()
