import json

import pytest

from treeslicer.cli import main


@pytest.fixture
def tree_file(tmp_path):
    path = tmp_path / "tree.nwk"
    path.write_text("((A[&date=2020.0]:3,B[&date=2019.0]:2):2,C[&date=2018.0]:3);\n")
    return path


@pytest.fixture
def undated_tree_file(tmp_path):
    path = tmp_path / "undated.nwk"
    path.write_text("(((A:4,B:4):2,C:6):4,D:10);")
    return path


def test_plain_uniform(undated_tree_file, capsys):
    assert main([str(undated_tree_file), "--dimension", "5", "--format", "plain"]) == 0
    lines = capsys.readouterr().out.split()
    assert [float(line) for line in lines] == [0.0, 2.5, 5.0, 7.5, 10.0]


def test_json_dates(tree_file, capsys):
    code = main(
        [str(tree_file), "--type", "dates", "--date", "2018", "--date", "2019", "-f", "json"]
    )
    assert code == 0
    rows = json.loads(capsys.readouterr().out)
    assert [row["height"] for row in rows] == pytest.approx([0.0, 1.0, 2.0])
    assert [row["date"] for row in rows] == pytest.approx([2020.0, 2019.0, 2018.0])


def test_table_branch_density(undated_tree_file, capsys):
    assert main([str(undated_tree_file), "-t", "branches", "-d", "3"]) == 0
    out = capsys.readouterr().out
    assert "height" in out
    assert "5.000000" in out
    assert "date" not in out


def test_date_trait_option(undated_tree_file, capsys):
    code = main(
        [
            str(undated_tree_file),
            "-d",
            "3",
            "--date-trait",
            "A=2010,B=2010,C=2010,D=2010",
            "-f",
            "json",
        ]
    )
    assert code == 0
    rows = json.loads(capsys.readouterr().out)
    assert [row["date"] for row in rows] == pytest.approx([2010.0, 2005.0, 2000.0])


def test_dates_file_option(undated_tree_file, tmp_path, capsys):
    dates = tmp_path / "dates.tsv"
    dates.write_text("A\t2000\nB\t2000\nC\t2000\nD\t2000\n")
    code = main([str(undated_tree_file), "-d", "2", "--dates-file", str(dates), "-f", "json"])
    assert code == 0
    rows = json.loads(capsys.readouterr().out)
    assert rows[-1]["date"] == pytest.approx(1990.0)


def test_exclude_last(undated_tree_file, capsys):
    assert main([str(undated_tree_file), "-d", "5", "--exclude-last", "-f", "plain"]) == 0
    lines = capsys.readouterr().out.split()
    assert [float(line) for line in lines] == [0.0, 2.0, 4.0, 6.0, 8.0]


@pytest.mark.parametrize(
    "args",
    [
        ["--type", "heights", "-d", "3"],
        ["--stop", "origin", "-d", "3"],
        ["-d", "1"],
        ["--type", "dates"],
    ],
)
def test_configuration_errors(undated_tree_file, capsys, args):
    assert main([str(undated_tree_file)] + args) == 2
    assert "treeslicer: error:" in capsys.readouterr().err


def test_dates_on_undated_tree(undated_tree_file, capsys):
    assert main([str(undated_tree_file), "--type", "dates", "--date", "2000"]) == 2
    assert "dated" in capsys.readouterr().err
