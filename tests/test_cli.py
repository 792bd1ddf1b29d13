"""
Tests for the command line interface.
"""

import io

import pytest
from shaderxform.__main__ import main
from shaderxform.config import SHADERXFORM_CONFIG


LOOP = "for (var i: u32 = 0; i < 3; i++) { x[i] = i; }\nif (false) { y(); }\n"


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.delenv(SHADERXFORM_CONFIG, raising=False)


@pytest.fixture
def shader(tmp_path):
    path = tmp_path / "kernel.wgsl"
    path.write_text(LOOP)
    return path


class TestCli:
    """Test python -m shaderxform."""

    def test_stdout(self, shader, capsys):
        assert main([str(shader)]) == 0
        assert capsys.readouterr().out == "x[0] = 0; x[1] = 1; x[2] = 2; \n\n"

    def test_output_file(self, shader, tmp_path, capsys):
        out = tmp_path / "out.wgsl"
        assert main([str(shader), "-o", str(out)]) == 0
        assert out.read_text() == "x[0] = 0; x[1] = 1; x[2] = 2; \n\n"
        assert capsys.readouterr().out == ""

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("if (true) { a(); }"))
        assert main([]) == 0
        assert capsys.readouterr().out == " a(); "

    def test_threshold_flag(self, shader, capsys):
        assert main([str(shader), "--threshold", "2"]) == 0
        assert "/* Skipped */" in capsys.readouterr().out

    def test_pass_selection(self, shader, capsys):
        assert main([str(shader), "--pass", "conditionals"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("for (var i: u32 = 0; i < 3; i++)")
        assert "if (" not in out

    def test_config_file(self, shader, tmp_path, capsys):
        config = tmp_path / "xform.yaml"
        config.write_text("threshold: 1\n")
        assert main([str(shader), "--config", str(config)]) == 0
        assert "/* Skipped */" in capsys.readouterr().out

    def test_verbose_reports(self, shader, capsys):
        assert main([str(shader), "-v"]) == 0
        err = capsys.readouterr().err
        assert "I001" in err
        assert "I002" in err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.wgsl")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_bad_config(self, shader, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("threshold: -3\n")
        assert main([str(shader), "--config", str(config)]) == 1
        assert "E301" in capsys.readouterr().err

    def test_transform_error(self, tmp_path, capsys):
        path = tmp_path / "bad.wgsl"
        path.write_text("for (var i: u32 = 0; i < ²; i++) { a; }")
        assert main([str(path)]) == 1
        assert "E101" in capsys.readouterr().err

    def test_unknown_pass_rejected(self, shader):
        with pytest.raises(SystemExit):
            main([str(shader), "--pass", "inline"])
