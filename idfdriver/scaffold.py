"""Skeleton ESP-IDF project creation for ``create-project``."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping
import re

_PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


class TemplateError(ValueError):
    """Raised when a scaffold template references an unknown variable."""


_ROOT_CMAKELISTS = """\
# For more information about build system see
# https://docs.espressif.com/projects/esp-idf/en/latest/api-guides/build-system.html
# The following five lines of boilerplate have to be in your project's
# CMakeLists.txt.

cmake_minimum_required(VERSION 3.16)

include($ENV{IDF_PATH}/tools/cmake/project.cmake)
project({{project.name}})
"""

_MAIN_CMAKELISTS = """\
idf_component_register(SRCS "main.c"
                    INCLUDE_DIRS ".")
"""

_MAIN_C = """\
#include <stdio.h>
#include <inttypes.h>
#include "sdkconfig.h"
#include "freertos/FreeRTOS.h"
#include "freertos/task.h"
#include "esp_chip_info.h"
#include "esp_flash.h"
#include "esp_system.h"

void app_main(void)
{
    printf("Hello world!\\n");

    esp_chip_info_t chip_info;
    uint32_t flash_size;
    esp_chip_info(&chip_info);
    printf("This is %s chip with %d CPU core(s), ", CONFIG_IDF_TARGET, chip_info.cores);

    if (esp_flash_get_size(NULL, &flash_size) != ESP_OK) {
        printf("Get flash size failed");
        return;
    }
    printf("%" PRIu32 "MB flash\\n", flash_size / (uint32_t)(1024 * 1024));
    printf("Minimum free heap size: %" PRIu32 " bytes\\n", esp_get_minimum_free_heap_size());

    for (int i = 10; i >= 0; i--) {
        printf("Restarting in %d seconds...\\n", i);
        vTaskDelay(1000 / portTICK_PERIOD_MS);
    }
    printf("Restarting now.\\n");
    fflush(stdout);
    esp_restart();
}
"""

_README = """\
# {{project.name}}

This is the {{project.name}} ESP-IDF project.

## Build and Flash

Build the project:
```
{{tool.name}} build
```

Flash the project:
```
{{tool.name}} flash
```

Monitor the output:
```
{{tool.name}} monitor
```
"""

_GITIGNORE = """\
build/
managed_components/
dependencies.lock
*.tmp
"""

PROJECT_FILES: Dict[str, str] = {
    "CMakeLists.txt": _ROOT_CMAKELISTS,
    "main/CMakeLists.txt": _MAIN_CMAKELISTS,
    "main/main.c": _MAIN_C,
    "README.md": _README,
    ".gitignore": _GITIGNORE,
}


def render_template(text: str, context: Mapping[str, Mapping[str, str]]) -> str:
    def replacement(match: re.Match[str]) -> str:
        path = match.group(1).strip()
        namespace, _, key = path.partition(".")
        values = context.get(namespace)
        if values is None or key not in values:
            raise TemplateError(f"Unknown template variable '{path}'")
        return str(values[key])

    return _PLACEHOLDER_PATTERN.sub(replacement, text)


def create_project(name: str, parent: Path | None = None, *, tool_name: str = "idfdriver") -> Path:
    """Create a minimal project called ``name`` and return its directory."""

    if not name.strip() or "/" in name or "\\" in name:
        raise ValueError(f"Invalid project name '{name}'")
    project_dir = (parent / name) if parent is not None else Path(name)
    if project_dir.exists():
        raise ValueError(f"Directory {project_dir} already exists")

    context = {"project": {"name": name}, "tool": {"name": tool_name}}
    for relative, template in PROJECT_FILES.items():
        target = project_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(render_template(template, context), encoding="utf-8")
    return project_dir


__all__ = ["PROJECT_FILES", "TemplateError", "create_project", "render_template"]
