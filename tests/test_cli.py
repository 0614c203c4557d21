from __future__ import annotations

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


class TestInit:

    def test_missing_config_prints_template(self, runner, tmp_path):
        from adsbuild.cli import cli
        result = runner.invoke(cli, ["init", "--config", str(tmp_path / "project.yaml")])
        assert result.exit_code == 1
        assert "base_model_loc:" in result.output
        assert "coord_sites:" in result.output

    def test_example_written_to_file(self, runner, tmp_path):
        from adsbuild.cli import cli
        from adsbuild.config import load_project
        path = tmp_path / "project.yaml.example"
        result = runner.invoke(cli, ["init", "--example", str(path)])
        assert result.exit_code == 0, result.output
        assert str(path) in result.output
        assert [s.name for s in load_project(path).coord_sites] == ["c1", "c2"]

    def test_valid_project(self, runner, project_dir):
        from adsbuild.cli import cli
        result = runner.invoke(cli, ["init", "-c", str(project_dir / "project.yaml")])
        assert result.exit_code == 0, result.output
        assert "2 site(s), 3 adsorbate(s)" in result.output

    def test_invalid_project(self, runner, tmp_path):
        from adsbuild.cli import cli
        path = tmp_path / "project.yaml"
        path.write_text("base_model_loc: host.msi\n")
        result = runner.invoke(cli, ["init", "-c", str(path)])
        assert result.exit_code == 1


class TestBuild:

    def test_build_project(self, runner, project_dir):
        from adsbuild.cli import cli
        result = runner.invoke(cli, ["build", "-c", str(project_dir / "project.yaml"), "-j", "2"])
        assert result.exit_code == 0, result.output
        assert "4 built, 2 skipped" in result.output
        assert (project_dir / "built" / "C1_path" / "CO" / "host_CO_t1.msi").exists()

    def test_build_writes_report(self, runner, project_dir):
        pytest.importorskip("pandas")
        from adsbuild.cli import cli
        report = project_dir / "report.csv"
        result = runner.invoke(cli, [
            "build", "-c", str(project_dir / "project.yaml"), "--report", str(report),
        ])
        assert result.exit_code == 0, result.output
        lines = report.read_text().splitlines()
        assert lines[0] == "label,adsorbate,sites,status,path,reason"
        assert len(lines) == 7


class TestPlace:

    def test_place_co_on_top_site(self, runner, project_dir):
        from adsbuild.cli import cli
        from adsbuild.structure.msi import read_msi
        out = project_dir / "Pt_CO.msi"
        result = runner.invoke(cli, [
            "place",
            str(project_dir / "host.msi"),
            str(project_dir / "adsorbates" / "C1_path" / "CO.msi"),
            "--site", "9",
            "--coord", "1",
            "--stem", "1", "2",
            "--coord-angle", "90",
            "--bond-length", "1.85",
            "-o", str(out),
        ])
        assert result.exit_code == 0, result.output
        merged = read_msi(out)
        assert len(merged) == 14
        c = merged.position(13)
        assert c[2] - merged.position(9)[2] == pytest.approx(1.85, abs=1e-6)

    def test_place_collinear_plane_fails(self, runner, project_dir):
        from adsbuild.cli import cli
        result = runner.invoke(cli, [
            "place",
            str(project_dir / "host.msi"),
            str(project_dir / "adsorbates" / "C2_path" / "C3.msi"),
            "--site", "9",
            "--coord", "1",
            "--stem", "1", "3",
            "--plane", "1", "2", "3",
            "--plane-angle", "90",
            "-o", str(project_dir / "bad.msi"),
        ])
        assert result.exit_code == 1
        assert not (project_dir / "bad.msi").exists()

    def test_place_bad_params(self, runner, project_dir):
        from adsbuild.cli import cli
        result = runner.invoke(cli, [
            "place",
            str(project_dir / "host.msi"),
            str(project_dir / "adsorbates" / "C1_path" / "CO.msi"),
            "--site", "9",
            "--coord", "1",
            "--bond-length", "-1",
        ])
        assert result.exit_code == 1
