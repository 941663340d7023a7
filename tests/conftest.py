from __future__ import annotations

from pathlib import Path

import pytest

from sitecraft.models import ExtractedFile, FileKind, ProjectFileSet
from tests._fixtures.project_builder import ProjectBuilder

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <title>Bistro</title>
    <link rel="stylesheet" href="styles.css">
</head>
<body>
    <nav><a href="about.html">About</a> <a href="#menu">Menu</a></nav>
    <section id="menu"><i class="fas fa-utensils"></i></section>
    <script src="script.js"></script>
</body>
</html>
"""

ABOUT_HTML = """<!DOCTYPE html>
<html lang="en">
<head><title>About</title><link rel="stylesheet" href="styles.css"></head>
<body><h1>About us</h1><a href="index.html">Home</a></body>
</html>
"""


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def sample_files() -> ProjectFileSet:
    """A small two-page site with one stylesheet and one script."""
    return ProjectFileSet(
        [
            ExtractedFile("styles.css", "body { color: #222; }\n", FileKind.STYLE),
            ExtractedFile("about.html", ABOUT_HTML, FileKind.MARKUP),
            ExtractedFile("script.js", "console.log('ready');\n", FileKind.SCRIPT),
            ExtractedFile("index.html", INDEX_HTML, FileKind.MARKUP),
        ]
    )
