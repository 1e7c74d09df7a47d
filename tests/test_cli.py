import pytest

from messenger_corpus.cli import main, parse_args


def test_list(two_thread_export, capsys):
    assert main(["list", str(two_thread_export)]) == 0
    assert capsys.readouterr().out.splitlines() == ["climbing_xyz789", "radoslaw_abc123"]


def test_generate(two_thread_export, tmp_path):
    out = tmp_path / "out"
    code = main([
        "generate", "--input", str(two_thread_export), "--name", "climbing_xyz789",
        "--output", str(out), "--eom", "", "--eoc", "\n\n",
    ])
    assert code == 0
    assert (out / "climbing_xyz789.txt").read_text(encoding="utf-8") == (
        "|Alice Carol Dan|\n"
        "|3 2021 0 Carol|: who's in?\n"
        "|3 2021 5 Dan|: me\n"
    )


def test_generate_split_short_flags(two_thread_export, tmp_path):
    out = tmp_path / "out"
    code = main(["generate", "-i", str(two_thread_export), "-n", "radoslaw_abc123",
                 "-o", str(out), "-t", "0.2", "-s", "42", "--workers", "2", "--progress"])
    assert code == 0
    assert sorted(p.name for p in out.iterdir()) == ["radoslaw_abc123_test.txt", "radoslaw_abc123_train.txt"]


@pytest.mark.parametrize("ratio", ["0", "1", "1.5", "-0.2"])
def test_bad_ratio_rejected_before_reading(tmp_path, ratio):
    out = tmp_path / "out"
    code = main(["generate", "--input", str(tmp_path / "missing.zip"), "--output", str(out), "--test", ratio])
    assert code == 1
    assert not out.exists()


def test_unknown_conversation(two_thread_export, tmp_path):
    code = main(["generate", "--input", str(two_thread_export), "--name", "nobody",
                 "--output", str(tmp_path / "out")])
    assert code == 1


def test_missing_archive(tmp_path):
    assert main(["list", str(tmp_path / "missing.zip")]) == 1


def test_not_a_zip(tmp_path):
    bogus = tmp_path / "export.zip"
    bogus.write_text("nope")
    assert main(["list", str(bogus)]) == 1


def test_zero_workers_rejected(two_thread_export, tmp_path):
    assert main(["generate", "-i", str(two_thread_export), "-o", str(tmp_path), "--workers", "0"]) == 1


def test_usage_errors_exit_2():
    with pytest.raises(SystemExit) as exc:
        parse_args(["generate", "--input", "x.zip"])
    assert exc.value.code == 2
