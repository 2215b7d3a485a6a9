"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from sitemapgen.cli import build_overrides, create_parser, main
from sitemapgen.models import IndexEntry
from sitemapgen.output import render_index


def write(path: Path, text: str = "<html></html>") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def no_github_env(monkeypatch):
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)


@pytest.fixture
def site(tmp_path):
    write(tmp_path / "index.html")
    write(tmp_path / "about.html")
    return tmp_path


class TestParser:
    """Tests for argument parsing."""

    def test_overrides_only_include_set_options(self):
        """Test unset options do not override config file values."""
        args = create_parser().parse_args(["dist"])
        assert build_overrides(args) == {"public_dir": Path("dist")}

    def test_overrides_nested(self):
        """Test options map onto nested config sections."""
        args = create_parser().parse_args(
            [
                "dist",
                "--site-url",
                "https://example.com/",
                "--exclude-urls",
                "*/drafts/*",
                "--no-canonical",
                "--lastmod",
                "filemtime",
                "--priority",
                "0.5",
                "--no-gzip",
                "--max-urls-per-file",
                "100",
                "--strict",
                "--verbose",
            ]
        )

        overrides = build_overrides(args)

        assert overrides["site_url"] == "https://example.com/"
        assert overrides["discovery"] == {"exclude_urls": ["*/drafts/*"], "parse_canonical": False}
        assert overrides["entries"] == {"lastmod_strategy": "filemtime", "priority": 0.5}
        assert overrides["output"] == {"generate_gzip": False, "max_urls_per_file": 100}
        assert overrides["validation"] == {"strict": True}
        assert overrides["log_level"] == "DEBUG"

    def test_changefreq_choices(self):
        """Test invalid changefreq values are rejected by the parser."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--changefreq", "sometimes"])

    def test_version(self, capsys):
        """Test --version prints and exits."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "sitemapgen" in capsys.readouterr().out


class TestGenerate:
    """Tests for generation through main()."""

    def test_generate(self, site):
        """Test a successful run writes artifacts and exits 0."""
        code = main([str(site), "--site-url", "https://example.com/", "--lastmod", "none", "-q"])

        assert code == 0
        assert (site / "sitemap.xml").exists()
        assert (site / "sitemap.xml.gz").exists()
        assert (site / "sitemap.txt").exists()

    def test_generate_with_progress(self, site, capsys):
        """Test the non-quiet run prints a results summary."""
        code = main([str(site), "--site-url", "https://example.com/", "--lastmod", "filemtime"])

        assert code == 0
        assert "URLs in sitemap: 2" in capsys.readouterr().out

    def test_config_error(self, tmp_path):
        """Test invalid configuration exits 1 without writing anything."""
        code = main(
            [str(tmp_path), "--site-url", "https://example.com/", "--priority", "1.5", "--no-autodetect", "-q"]
        )

        assert code == 1
        assert list(tmp_path.iterdir()) == []

    def test_missing_site_url(self, tmp_path, monkeypatch, capsys):
        """Test a run without site URL reports the problem."""
        monkeypatch.chdir(tmp_path)

        code = main(["--no-autodetect"])

        assert code == 1
        assert "site_url" in capsys.readouterr().out

    def test_strict_failure(self, site):
        """Test strict mode exits 1 on protocol violations."""
        code = main(
            [
                str(site),
                "--site-url",
                "https://example.com/",
                "--additional-urls",
                "ftp://bad.example.com",
                "--lastmod",
                "none",
                "--strict",
                "-q",
            ]
        )
        assert code == 1

    def test_config_file(self, site):
        """Test settings are read from a YAML file."""
        config_path = site / "sitemap.yaml"
        config_path.write_text(
            f"site_url: https://example.com/\npublic_dir: {site}\n"
            "entries:\n  lastmod_strategy: none\noutput:\n  filename: pages.xml\n",
            encoding="utf-8",
        )

        code = main(["--config", str(config_path), "-q"])

        assert code == 0
        assert (site / "pages.xml").exists()
        assert (site / "pages.txt").exists()

    def test_cli_overrides_config_file(self, site):
        """Test options take precedence over the YAML file."""
        config_path = site / "sitemap.yaml"
        config_path.write_text(
            f"site_url: https://example.com/\npublic_dir: {site}\noutput:\n  generate_txt: true\n",
            encoding="utf-8",
        )

        code = main(["--config", str(config_path), "--no-txt", "--lastmod", "none", "-q"])

        assert code == 0
        assert not (site / "sitemap.txt").exists()

    def test_autodetect(self, tmp_path, monkeypatch):
        """Test the public directory and CNAME domain are detected."""
        dist = tmp_path / "dist"
        write(dist / "index.html")
        write(dist / "CNAME", "docs.example.org\n")
        monkeypatch.chdir(tmp_path)

        code = main(["--lastmod", "none", "-q"])

        assert code == 0
        assert "https://docs.example.org/index.html" in (dist / "sitemap.xml").read_text(encoding="utf-8")

    def test_autodetect_github_repository(self, tmp_path, monkeypatch):
        """Test the site URL is inferred from $GITHUB_REPOSITORY."""
        write(tmp_path / "public" / "index.html")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GITHUB_REPOSITORY", "octo/handbook")

        code = main(["--lastmod", "none", "-q"])

        assert code == 0
        content = (tmp_path / "public" / "sitemap.xml").read_text(encoding="utf-8")
        assert "https://octo.github.io/handbook/index.html" in content

    def test_log_file(self, site, tmp_path_factory):
        """Test log messages are written to --log-file."""
        log_file = tmp_path_factory.mktemp("logs") / "run.log"

        code = main(
            [str(site), "--site-url", "https://example.com/", "--lastmod", "none", "-v", "--log-file", str(log_file)]
        )

        assert code == 0
        assert "Collected 2 URL(s)" in log_file.read_text(encoding="utf-8")


class TestValidateOnly:
    """Tests for --validate-only."""

    def test_valid_file(self, site):
        """Test a valid sitemap exits 0."""
        main([str(site), "--site-url", "https://example.com/", "--lastmod", "none", "-q"])

        code = main(["--validate-only", "--validate", str(site / "sitemap.xml"), str(site / "sitemap.txt"), "-q"])

        assert code == 0

    def test_index_missing_close(self, tmp_path, capsys):
        """Test a truncated index fails only in strict mode."""
        index = tmp_path / "sitemap-index.xml"
        index.write_text(
            render_index([IndexEntry(loc="https://example.com/sitemap-1.xml")]).replace("</sitemapindex>", ""),
            encoding="utf-8",
        )

        assert main(["--validate-only", "--validate", str(index)]) == 0
        assert main(["--validate-only", "--validate", str(index), "--strict"]) == 1
        assert "invalid" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        """Test a missing file exits 1."""
        assert main(["--validate-only", "--validate", str(tmp_path / "sitemap.xml"), "-q"]) == 1

    def test_no_paths(self):
        """Test --validate-only without paths exits 1."""
        assert main(["--validate-only", "-q"]) == 1
