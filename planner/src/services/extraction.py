"""
Parsers turning package manager query output into package metadata.

Each parser is a pure function of the captured text.
"""

import json
from pathlib import Path
from typing import Optional

import yaml

from planner.src.models import PackageInfo

class ExtractionError(Exception):
    """Raised when package manager output does not have the expected shape."""
    pass

def parse_alpine_info(name: str, output: str) -> PackageInfo:
    """
    Parse `apk info -vwd <name>` output.

    Line 1 is the warning apk prints when querying a fresh root, line 2 holds
    `<name>-<version>-r<release> description:`, line 3 the description and
    line 6 the homepage. Output without the leading warning line is accepted.
    """
    lines = output.split("\n")
    prefix = f"{name}-"

    if lines and lines[0].startswith(prefix):
        lines.insert(0, "")

    if len(lines) < 6:
        raise ExtractionError(f"apk info output for '{name}' has {len(lines)} lines, expected 6")

    tokens = lines[1].split()
    if not tokens or not tokens[0].startswith(prefix):
        raise ExtractionError(f"apk info output for '{name}' does not start with '{prefix}'")

    return PackageInfo(
        homepage=lines[5].strip(),
        description=lines[2].strip(),
        version=tokens[0][len(prefix):],
    )

def parse_linuxbrew_info(name: str, output: str) -> PackageInfo:
    """Parse `brew info --json=v1 <name>` output: homepage, desc, stable version."""
    try:
        formulae = json.loads(output)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"brew info output for '{name}' is not JSON: {e}")

    if not isinstance(formulae, list) or not formulae:
        raise ExtractionError(f"brew info returned no formula for '{name}'")

    formula = formulae[0]
    try:
        stable = formula["versions"]["stable"]
    except (KeyError, TypeError):
        raise ExtractionError(f"brew info for '{name}' has no stable version")

    return PackageInfo(
        homepage=formula.get("homepage") or "",
        description=formula.get("desc") or "",
        version=stable,
    )

def conda_install_spec(name: str, revision_tag: str) -> str:
    """Version selector for `conda install`; `1.2--0` selects version 1.2 build 0."""
    return f"{name}={revision_tag.replace('--', '=')}"

def find_conda_dist(name: str, listing: str) -> str:
    """
    Find the package cache directory name in `conda list --export` output.
    Only lines whose name column matches exactly are considered.
    """
    for line in listing.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.split("=")[0] == name:
            return line.replace("=", "-")
    raise ExtractionError(f"'{name}' is not installed according to conda list")

def parse_conda_meta(meta_yaml: str, revision_tag: str) -> PackageInfo:
    """Read homepage and summary from a rendered recipe; the version is the revision tag."""
    try:
        meta = yaml.safe_load(meta_yaml) or {}
    except yaml.YAMLError as e:
        raise ExtractionError(f"Invalid recipe metadata: {e}")

    about = meta.get("about") or {}
    return PackageInfo(
        homepage=str(about.get("home") or ""),
        description=first_line(about.get("summary")),
        version=revision_tag,
    )

def read_conda_meta(pkgs_dir: Path, dist: str) -> str:
    """
    Load recipe metadata for an unpacked package.
    Falls back to `info/about.json` for packages built without their recipe.
    """
    info_dir = pkgs_dir / dist / "info"
    recipe = info_dir / "recipe" / "meta.yaml"
    if recipe.exists():
        return recipe.read_text()

    about = info_dir / "about.json"
    if about.exists():
        # JSON is valid YAML; wrap it so parse_conda_meta sees an `about` section
        return json.dumps({"about": json.loads(about.read_text())})

    raise ExtractionError(f"No recipe metadata found under {info_dir}")

def first_line(text: Optional[str]) -> str:
    return str(text or "").strip().split("\n")[0]
