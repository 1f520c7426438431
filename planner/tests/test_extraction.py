"""Tests for package manager output parsers."""

import json

import pytest
from planner.src.services.extraction import (
    parse_alpine_info,
    parse_linuxbrew_info,
    parse_conda_meta,
    find_conda_dist,
    conda_install_spec,
    read_conda_meta,
    ExtractionError,
)

ALPINE_OUTPUT = (
    "WARNING: Ignoring APKINDEX.c51f8f92.tar.gz: No such file or directory\n"
    "musl-1.1.11-r2 description:\n"
    "the musl c library (libc) implementation\n"
    "\n"
    "musl-1.1.11-r2 webpage:\n"
    "http://www.musl-libc.org/\n"
    "\n"
)

BREW_OUTPUT = json.dumps([
    {
        "name": "samtools",
        "desc": "Tools for manipulating next-generation sequencing data",
        "homepage": "http://www.htslib.org/",
        "versions": {"stable": "1.3.1", "devel": None, "head": "HEAD"},
    }
])

CONDA_LIST = """# This file may be used to create an environment using:
# $ conda create --name <env> --file <this file>
# platform: linux-64
htslib=1.3.1=0
samtools-extra=2.0=0
samtools=1.3.1=5
zlib=1.2.8=3
"""

CONDA_META = """
package:
  name: samtools
  version: 1.3.1
about:
  home: http://www.htslib.org/
  license: MIT
  summary: Tools for dealing with SAM, BAM and CRAM files
"""

def test_alpine_info():
    info = parse_alpine_info("musl", ALPINE_OUTPUT)
    assert info.version == "1.1.11-r2"
    assert info.homepage == "http://www.musl-libc.org/"
    assert info.description == "the musl c library (libc) implementation"

def test_alpine_info_without_warning_line():
    info = parse_alpine_info("musl", ALPINE_OUTPUT.split("\n", 1)[1])
    assert info.version == "1.1.11-r2"
    assert info.homepage == "http://www.musl-libc.org/"

def test_alpine_name_with_dashes():
    output = (
        "\n"
        "py-yaml-3.11-r0 description:\n"
        "Python bindings for YAML\n"
        "\n"
        "py-yaml-3.11-r0 webpage:\n"
        "http://pyyaml.org/\n"
    )
    info = parse_alpine_info("py-yaml", output)
    assert info.version == "3.11-r0"

def test_alpine_other_package_rejected():
    with pytest.raises(ExtractionError, match="does not start with 'zlib-'"):
        parse_alpine_info("zlib", ALPINE_OUTPUT)

def test_alpine_truncated_output():
    with pytest.raises(ExtractionError, match="expected 6"):
        parse_alpine_info("musl", "musl-1.1.11-r2 description:\nlibc\n")

def test_linuxbrew_info():
    info = parse_linuxbrew_info("samtools", BREW_OUTPUT)
    assert info.homepage == "http://www.htslib.org/"
    assert info.description == "Tools for manipulating next-generation sequencing data"
    assert info.version == "1.3.1"

def test_linuxbrew_invalid_json():
    with pytest.raises(ExtractionError, match="not JSON"):
        parse_linuxbrew_info("samtools", "Error: No available formula")

def test_linuxbrew_no_formula():
    with pytest.raises(ExtractionError, match="no formula"):
        parse_linuxbrew_info("samtools", "[]")

def test_conda_install_spec():
    assert conda_install_spec("samtools", "1.2--0") == "samtools=1.2=0"
    assert conda_install_spec("samtools", "1.2") == "samtools=1.2"

def test_find_conda_dist_matches_exact_name():
    assert find_conda_dist("samtools", CONDA_LIST) == "samtools-1.3.1-5"

def test_find_conda_dist_missing():
    with pytest.raises(ExtractionError, match="'sam' is not installed"):
        find_conda_dist("sam", CONDA_LIST)

def test_conda_meta_uses_revision_as_version():
    info = parse_conda_meta(CONDA_META, "1.2--0")
    assert info.version == "1.2--0"
    assert info.homepage == "http://www.htslib.org/"
    assert info.description == "Tools for dealing with SAM, BAM and CRAM files"

def test_conda_meta_without_about():
    info = parse_conda_meta("package:\n  name: x\n", "1.0--0")
    assert info.homepage == ""
    assert info.description == ""

def test_read_conda_meta_prefers_recipe(tmp_path):
    recipe = tmp_path / "samtools-1.3.1-5" / "info" / "recipe"
    recipe.mkdir(parents=True)
    (recipe / "meta.yaml").write_text(CONDA_META)

    assert read_conda_meta(tmp_path, "samtools-1.3.1-5") == CONDA_META

def test_read_conda_meta_falls_back_to_about_json(tmp_path):
    info_dir = tmp_path / "zlib-1.2.8-3" / "info"
    info_dir.mkdir(parents=True)
    (info_dir / "about.json").write_text(json.dumps({"home": "http://zlib.net", "summary": "zlib"}))

    info = parse_conda_meta(read_conda_meta(tmp_path, "zlib-1.2.8-3"), "1.2.8--3")
    assert info.homepage == "http://zlib.net"
    assert info.description == "zlib"

def test_read_conda_meta_missing(tmp_path):
    with pytest.raises(ExtractionError, match="No recipe metadata"):
        read_conda_meta(tmp_path, "zlib-1.2.8-3")
