from __future__ import annotations

import textwrap
from pathlib import Path

import numpy as np
import pytest
from pydantic import ValidationError

CO_ENTRY = {
    "name": "CO",
    "coordAtomIds": [1],
    "stemAtomIds": [1, 2],
    "stemAngleAtCoord": 90.0,
    "bSym": False,
    "upperAtomId": 2,
    "atomNums": 2,
    "pathName": "C1",
}


class TestAdsorbateInfo:

    def test_camel_case_keys(self):
        from adsbuild.config import AdsorbateInfo
        info = AdsorbateInfo.model_validate(CO_ENTRY)
        assert info.coord_atom_ids == [1]
        assert info.stem_atom_ids == (1, 2)
        assert info.stem_coord_angle == 90.0
        assert info.upper_atom_id == 2
        assert info.path_name == "C1"

    def test_snake_case_keys_accepted(self):
        from adsbuild.config import AdsorbateInfo
        info = AdsorbateInfo(name="H", coord_atom_ids=[1], atom_nums=1, path_name="H")
        assert info.stem_atom_ids is None

    def test_virtual_stem_needs_plane(self):
        from adsbuild.config import AdsorbateInfo
        entry = dict(CO_ENTRY, stemAtomIds=[1, 1])
        with pytest.raises(ValidationError, match="virtual stem"):
            AdsorbateInfo.model_validate(entry)

    def test_ids_checked_against_atom_count(self):
        from adsbuild.config import AdsorbateInfo
        entry = dict(CO_ENTRY, upperAtomId=3)
        with pytest.raises(ValidationError, match="outside"):
            AdsorbateInfo.model_validate(entry)

    def test_empty_coord_ids(self):
        from adsbuild.config import AdsorbateInfo
        with pytest.raises(ValidationError):
            AdsorbateInfo.model_validate(dict(CO_ENTRY, coordAtomIds=[]))

    def test_file_path(self):
        from adsbuild.config import AdsorbateInfo
        info = AdsorbateInfo.model_validate(CO_ENTRY)
        assert info.file_path("/data/ads") == Path("/data/ads/C1_path/CO.msi")

    def test_to_params_uses_project_bond_length(self):
        from adsbuild.config import AdsorbateInfo
        info = AdsorbateInfo.model_validate(CO_ENTRY)
        final = info.to_params(ads_direction=[1, 0, 0], default_bond_length=1.7).finalize()
        assert final.bond_length == 1.7
        assert final.stem_atom_ids == (1, 2)
        assert np.allclose(final.ads_direction, [1.0, 0.0, 0.0])

    def test_entry_bond_length_wins(self):
        from adsbuild.config import AdsorbateInfo
        info = AdsorbateInfo.model_validate(dict(CO_ENTRY, bondLength=2.1))
        assert info.to_params(default_bond_length=1.4).bond_length == 2.1


class TestAdsorbateTable:

    def test_duplicate_names_rejected(self):
        from adsbuild.config import AdsorbateTable
        with pytest.raises(ValidationError, match="unique"):
            AdsorbateTable.model_validate(
                {"directory": "ads", "Adsorbates": [CO_ENTRY, CO_ENTRY]}
            )

    def test_hash_table(self):
        from adsbuild.config import AdsorbateTable
        table = AdsorbateTable.model_validate({"directory": "ads", "Adsorbates": [CO_ENTRY]})
        assert list(table.hash_table()) == ["CO"]


class TestCoordCase:

    def test_reverse_swaps_sites(self):
        from adsbuild.config import CoordCase
        case = CoordCase(name="pairs", cases=[(41, 42), (43, 44)])
        assert case.get_cases() == [(41, 42), (43, 44)]
        assert case.get_cases(reverse=True) == [(42, 41), (44, 43)]

    def test_reverse_single_site_raises(self):
        from adsbuild.config import CoordCase
        case = CoordCase(name="single", cases=[(41, None)])
        with pytest.raises(ValueError):
            case.get_cases(reverse=True)


class TestProjectConfig:

    def _base(self, **overrides):
        raw = {
            "base_model_loc": "host.msi",
            "adsorbate_table_loc": "ads_table.yaml",
            "export_loc": "built",
            "coord_sites": [{"name": "c1", "atom_id": 41}],
        }
        raw.update(overrides)
        return raw

    def test_defaults(self):
        from adsbuild.config import ProjectConfig
        project = ProjectConfig.model_validate(self._base())
        assert project.bond_length == 1.4
        assert project.nworkers == 1
        assert project.coord_cases == []
        assert project.hash_coord_site() == {41: "c1"}

    def test_no_sites_rejected(self):
        from adsbuild.config import ProjectConfig
        with pytest.raises(ValidationError):
            ProjectConfig.model_validate(self._base(coord_sites=[]))

    def test_duplicate_site_ids_rejected(self):
        from adsbuild.config import ProjectConfig
        sites = [{"name": "a", "atom_id": 41}, {"name": "b", "atom_id": 41}]
        with pytest.raises(ValidationError):
            ProjectConfig.model_validate(self._base(coord_sites=sites))

    @pytest.mark.parametrize("field, value", [
        ("bond_length", 0.0),
        ("nworkers", 0),
    ])
    def test_non_positive_values_rejected(self, field, value):
        from adsbuild.config import ProjectConfig
        with pytest.raises(ValidationError):
            ProjectConfig.model_validate(self._base(**{field: value}))


class TestLoaders:

    def test_load_project_resolves_paths(self, project_dir):
        from adsbuild.config import load_project
        project = load_project(project_dir / "project.yaml")
        assert Path(project.base_model_loc) == project_dir / "host.msi"
        assert Path(project.export_loc) == project_dir / "built"
        assert project.direction_sites == (9, 10)
        assert project.coord_cases[0].get_cases() == [(9, 10)]

    def test_load_adsorbate_table_resolves_directory(self, project_dir):
        from adsbuild.config import load_adsorbate_table
        table = load_adsorbate_table(project_dir / "ads_table.yaml")
        assert Path(table.directory) == project_dir / "adsorbates"
        co = table.hash_table()["CO"]
        assert co.file_path(table.directory).exists()

    def test_missing_file(self, tmp_path):
        from adsbuild.config import load_project
        with pytest.raises(FileNotFoundError):
            load_project(tmp_path / "project.yaml")

    def test_empty_file(self, tmp_path):
        from adsbuild.config import load_project
        path = tmp_path / "project.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_project(path)

    def test_comment_only_file(self, tmp_path):
        from adsbuild.config import load_project
        path = tmp_path / "project.yaml"
        path.write_text("# nothing here\n")
        with pytest.raises(ValueError, match="no YAML keys"):
            load_project(path)

    def test_top_level_list_rejected(self, tmp_path):
        from adsbuild.config import load_adsorbate_table
        path = tmp_path / "ads_table.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_adsorbate_table(path)

    def test_template_is_valid_project(self, tmp_path):
        from adsbuild.config import generate_example_project, load_project
        path = generate_example_project(tmp_path / "project.yaml")
        project = load_project(path)
        assert [s.atom_id for s in project.coord_sites] == [41, 42]

    def test_invalid_yaml_raises(self, tmp_path):
        import yaml
        from adsbuild.config import load_project
        path = tmp_path / "project.yaml"
        path.write_text(textwrap.dedent("""\
            base_model_loc: [unclosed
            """))
        with pytest.raises(yaml.YAMLError):
            load_project(path)


class TestElementTable:

    def test_load_and_hash(self, element_table_path):
        from adsbuild.config import load_element_table
        elements = load_element_table(element_table_path).hash_table()
        assert sorted(elements) == ["C", "H", "O", "Pt"]
        pt = elements["Pt"]
        assert pt.atomic_number == 78
        assert pt.lcao == 3
        assert pt.pot == "Pt_00PBE.usp"
        assert pt.spin == 0

    def test_missing_field_rejected(self, tmp_path):
        from adsbuild.config import load_element_table
        path = tmp_path / "elements.yaml"
        path.write_text("Element_info:\n  - {element: H, atomic_num: 1, mass: 1.008}\n")
        with pytest.raises(ValidationError):
            load_element_table(path)

    def test_project_resolves_element_table(self, project_dir):
        from adsbuild.config import load_project
        path = project_dir / "project.yaml"
        path.write_text(path.read_text() + "element_table_loc: elements.yaml\n")
        project = load_project(path)
        assert Path(project.element_table_loc) == project_dir / "elements.yaml"

    def test_element_table_optional(self, project_dir):
        from adsbuild.config import load_project
        assert load_project(project_dir / "project.yaml").element_table_loc is None
