"""
CLI tests for lmpkit (asm / disasm / run).
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import lmp_asm
import lmpkit

EXAMPLES = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")


def example(name: str) -> str:
    return os.path.join(EXAMPLES, name)


class TestHelpers:

    def test_parse_inputs(self):
        assert lmpkit.parse_inputs("1, 2,3") == [1, 2, 3]
        assert lmpkit.parse_inputs("-5") == [-5]
        assert lmpkit.parse_inputs(None) == []

    def test_parse_inputs_rejects_text(self):
        with pytest.raises(ValueError):
            lmpkit.parse_inputs("1,x")

    def test_read_image(self, tmp_path):
        path = tmp_path / "prog.img"
        path.write_text("901\n\n902\n1\n", encoding='utf-8')
        assert lmpkit.read_image(path) == [901, 902, 1]

    def test_version_matches_package(self, capsys):
        with pytest.raises(SystemExit):
            lmpkit.main(["--version"])
        assert lmp_asm.__version__ in capsys.readouterr().out


class TestAsmCommand:

    def test_image_to_stdout(self, capsys):
        assert lmpkit.main(["asm", example("add_two.lmp")]) == 0
        out = capsys.readouterr().out.split()
        assert out == ["901", "3006", "901", "1006", "902", "1", "0"]

    def test_image_to_file_and_back(self, tmp_path, capsys):
        img = tmp_path / "countdown.img"
        assert lmpkit.main(["asm", example("countdown.lmp"), "-o", str(img)]) == 0
        assert img.read_text(encoding='utf-8').split() == ["901", "902", "2005", "8001", "1", "1"]

        assert lmpkit.main(["disasm", str(img)]) == 0
        out = capsys.readouterr().out
        assert "SUB 5" in out
        assert "BRP 1" in out

    def test_listing(self, capsys):
        assert lmpkit.main(["asm", example("countdown.lmp"), "--listing"]) == 0
        out = capsys.readouterr().out
        assert "ADDR" in out
        assert "loop" in out

    def test_assembler_error(self, tmp_path, capsys):
        src = tmp_path / "bad.lmp"
        src.write_text("ADD nowhere\n", encoding='utf-8')
        assert lmpkit.main(["asm", str(src)]) == 1
        assert "Unknown label" in capsys.readouterr().err

    def test_missing_file(self, capsys):
        assert lmpkit.main(["asm", "no_such_file.lmp"]) == 1
        assert "not found" in capsys.readouterr().err


class TestRunCommand:

    def test_run_with_inputs(self, capsys):
        rc = lmpkit.main(["run", example("countdown.lmp"), "--input", "3", "--no-prompt"])
        assert rc == 0
        assert capsys.readouterr().out == "3\n2\n1\n0\n"

    def test_run_image(self, tmp_path, capsys):
        img = tmp_path / "echo.img"
        img.write_text("901\n902\n1\n", encoding='utf-8')
        assert lmpkit.main(["run", str(img), "--image", "--input", "8", "--no-prompt"]) == 0
        assert capsys.readouterr().out == "8\n"

    def test_input_exhausted(self, capsys):
        rc = lmpkit.main(["run", example("add_two.lmp"), "--input", "3", "--no-prompt"])
        assert rc == 1
        assert "input required" in capsys.readouterr().err

    def test_prompt_reads_stdin(self, monkeypatch, capsys):
        import io
        monkeypatch.setattr(sys, "stdin", io.StringIO("3\n4\n"))
        assert lmpkit.main(["run", example("add_two.lmp")]) == 0
        assert capsys.readouterr().out == "7\n"

    def test_output_printed_before_prompt(self, tmp_path, monkeypatch, capsys):
        src = tmp_path / "echo.lmp"
        src.write_text("LDA a\nOUT\nINP\nHLT\na DAT 7\n", encoding='utf-8')
        seen_at_prompt = []

        def answer():
            seen_at_prompt.append(capsys.readouterr().out)
            return 1

        monkeypatch.setattr(lmpkit, "_prompt_input", answer)
        assert lmpkit.main(["run", str(src)]) == 0
        assert seen_at_prompt == ["7\n"]

    def test_dump(self, capsys):
        rc = lmpkit.main(["run", example("countdown.lmp"), "--input", "1",
                          "--no-prompt", "--dump"])
        assert rc == 0
        captured = capsys.readouterr()
        assert captured.out == "1\n0\n"
        assert captured.err.splitlines()[0].startswith("000")
        assert "8001" in captured.err

    def test_fault(self, tmp_path, capsys):
        src = tmp_path / "fault.lmp"
        src.write_text("BRA 150\n", encoding='utf-8')
        assert lmpkit.main(["run", str(src)]) == 1
        assert "ADDRESS_OUT_OF_RANGE" in capsys.readouterr().err

    def test_timeout(self, tmp_path, capsys):
        src = tmp_path / "spin.lmp"
        src.write_text("loop BRA loop\n", encoding='utf-8')
        assert lmpkit.main(["run", str(src), "--max-cycles", "20"]) == 1
        assert "cycle limit" in capsys.readouterr().err

    def test_compile_failure(self, tmp_path, capsys):
        src = tmp_path / "bad.lmp"
        src.write_text("FOO\n", encoding='utf-8')
        assert lmpkit.main(["run", str(src)]) == 1
        assert "VM error" in capsys.readouterr().err

    def test_trace(self, capsys):
        rc = lmpkit.main(["run", example("countdown.lmp"), "--input", "0",
                          "--no-prompt", "--trace"])
        assert rc == 0
        err = capsys.readouterr().err
        assert "000: INP" in err

    def test_no_command(self, capsys):
        assert lmpkit.main([]) == 1
