"""
mainモジュール（CLI）のテスト
"""

import pytest
from pathlib import Path
import sys

# srcディレクトリをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import main as main_module
from _iges_helpers import build_iges


FIXTURES = Path(__file__).parent / 'fixtures'


class TestMain:
    """CLIのテスト"""

    def test_prints_sections(self, capsys):
        main_module.main([str(FIXTURES / 'line.igs')])
        out = capsys.readouterr().out

        assert "[Global Section]" in out
        assert "file_name: line.igs" in out
        assert " 110 Line: 1" in out
        assert "Segment (-30.1338, 13.5916, 0) -> (31.4047, 42.6514, 0)" in out
        assert "Loading completed!" in out

    def test_missing_file(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main_module.main(['/nonexistent/file.igs'])

        assert excinfo.value.code == 1
        assert "Error: File not found" in capsys.readouterr().out

    def test_structural_error(self, tmp_path: Path, capsys):
        """構造エラーはError表示で終了"""
        file_path = tmp_path / "broken.igs"
        file_path.write_text(build_iges([("116", 0, "116,1.,2.,3.;")], directory_count=8))

        with pytest.raises(SystemExit) as excinfo:
            main_module.main([str(file_path)])

        assert excinfo.value.code == 1
        assert "Error: Inconsistent IGES structure" in capsys.readouterr().out

    def test_skipped_entities_listed(self, tmp_path: Path, capsys):
        file_path = tmp_path / "mixed.igs"
        file_path.write_text(build_iges([
            ("314", 0, "314,1.,1.,1.;"),
            ("116", 0, "116,1.,2.,3.;"),
        ]))

        with pytest.warns(UserWarning):
            main_module.main([str(file_path)])
        out = capsys.readouterr().out

        assert "[Skipped Entities]" in out
        assert "unsupported entity type 314" in out

    @pytest.mark.parametrize("value", ["0", "-3", "many"])
    def test_arc_segments_must_be_positive(self, tmp_path: Path, capsys, value):
        """--arc-segments は1以上の整数のみ"""
        with pytest.raises(SystemExit) as excinfo:
            main_module.main([str(FIXTURES / 'point.igs'), '--image', str(tmp_path / "a.png"),
                              '--arc-segments', value])

        assert excinfo.value.code == 2
        assert "--arc-segments" in capsys.readouterr().err
        assert not (tmp_path / "a.png").exists()

    def test_image_with_arc_and_non_numeric_point(self, tmp_path: Path, capsys):
        """円弧とNaN座標を含むファイルも画像を出力できる"""
        file_path = tmp_path / "arc.igs"
        file_path.write_text(build_iges([
            ("100", 0, "100,0.,0.,0.,1.,0.,0.,1.;"),
            ("116", 0, "116,1.,abc,3.;"),
        ]))
        output = tmp_path / "arc.png"

        main_module.main([str(file_path), '--image', str(output), '--arc-segments', '1'])

        assert output.exists()
        assert "Loading completed!" in capsys.readouterr().out

    def test_image_option(self, tmp_path: Path, capsys):
        output = tmp_path / "point.png"

        main_module.main([str(FIXTURES / 'point.igs'), '--image', str(output),
                          '--preset', 'thumbnail'])

        assert output.exists()
        assert "Image saved" in capsys.readouterr().out
