"""Tests for Ruby source discovery."""

from pathlib import Path

from rubygraph_cli.discovery import default_scan_paths, discover_ruby_files


def test_discovers_ruby_files_in_app_directory(temp_dir: Path):
    app_dir = temp_dir / "app" / "models"
    app_dir.mkdir(parents=True)
    (app_dir / "user.rb").write_text("class User; end")
    (app_dir / "order.rb").write_text("class Order; end")

    files = discover_ruby_files([temp_dir])

    assert len(files) == 2
    assert files == sorted(files)
    assert any(f.name == "user.rb" for f in files)


def test_excludes_non_ruby_files(temp_dir: Path):
    (temp_dir / "user.rb").write_text("class User; end")
    (temp_dir / "README.md").write_text("Documentation")

    files = discover_ruby_files([temp_dir])

    assert [f.name for f in files] == ["user.rb"]


def test_skips_vendor_directories(temp_dir: Path):
    vendor = temp_dir / "vendor" / "bundle"
    vendor.mkdir(parents=True)
    (vendor / "gem.rb").write_text("class Gem; end")
    (temp_dir / "main.rb").write_text("class Main; end")

    assert [f.name for f in discover_ruby_files([temp_dir])] == ["main.rb"]


def test_deduplicates_overlapping_paths(temp_dir: Path):
    (temp_dir / "a.rb").write_text("class A; end")
    files = discover_ruby_files([temp_dir, temp_dir / "a.rb", temp_dir / "missing"])
    assert len(files) == 1


def test_default_scan_paths_prefer_app_and_lib(temp_dir: Path):
    (temp_dir / "app").mkdir()
    assert default_scan_paths(temp_dir) == [temp_dir / "app"]


def test_default_scan_paths_fall_back_to_root(temp_dir: Path):
    assert default_scan_paths(temp_dir) == [temp_dir]


def test_explicit_scan_paths_are_relative_to_root(temp_dir: Path):
    assert default_scan_paths(temp_dir, ["engines"]) == [temp_dir / "engines"]
