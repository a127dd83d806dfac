import json

import pytest
from typer.testing import CliRunner

from cw_contest_logger.adif import dump_adif, read_adif_file
from cw_contest_logger.cli import app

runner = CliRunner()

DX_LINE = "DX de W3LPL:     7003.0  JA1ABC       CW up 2                        0430Z"


@pytest.fixture
def adif_log(tmp_path, make_qso):
    qsos = [
        make_qso("W1AW", band="20m", time="12:00"),
        make_qso("K2ABC", band="20m", time="12:01"),
        make_qso("W1AW", band="20m", time="12:02"),
        make_qso("JA1ABC", band="40m", time="12:03"),
    ]
    path = tmp_path / "log.adi"
    path.write_text(dump_adif(qsos), encoding="utf-8")
    return path


def test_grid(temp_config):
    result = runner.invoke(app, ["grid", "FN20"])
    assert result.exit_code == 0
    assert "40.5" in result.output
    assert "-75.0" in result.output


def test_grid_with_target(temp_config):
    result = runner.invoke(app, ["grid", "FN20", "--to", "FN25"])
    assert result.exit_code == 0
    assert "556 km" in result.output


def test_grid_invalid(temp_config):
    result = runner.invoke(app, ["grid", "ZZ99"])
    assert result.exit_code == 1
    assert "Invalid grid locator" in result.output


def test_band(temp_config):
    result = runner.invoke(app, ["band", "14.05"])
    assert result.exit_code == 0
    assert "20m" in result.output
    assert "CW" in result.output

    result = runner.invoke(app, ["band", "29.8"])
    assert result.exit_code == 1


def test_spot(temp_config):
    result = runner.invoke(app, ["spot", DX_LINE, "--my-grid", "FN20", "--grid", "PM95"])
    assert result.exit_code == 0
    assert "JA1ABC" in result.output
    assert "40m" in result.output
    assert "distance" in result.output


def test_spot_no_match(temp_config):
    result = runner.invoke(app, ["spot", "not a spot"])
    assert result.exit_code == 1


def test_show(temp_config, adif_log):
    result = runner.invoke(app, ["show", str(adif_log)])
    assert result.exit_code == 0
    assert "K2ABC" in result.output
    assert "DUPE" in result.output


def test_show_json(temp_config, adif_log):
    result = runner.invoke(app, ["show", str(adif_log), "--json-out"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["total_qsos"] == 4
    assert data["duplicates"] == 1


def test_score(temp_config, adif_log, tmp_path):
    out = tmp_path / "scored.adi"
    result = runner.invoke(
        app, ["score", str(adif_log), "--contest", "Test Sprint", "--mults", "2", "--out", str(out)]
    )
    assert result.exit_code == 0, result.output
    assert "Test Sprint" in result.output

    scored = read_adif_file(out)
    assert [q.serial_sent for q in scored] == ["1", "2", "3", "4"]


def test_score_prefix_mults(temp_config, adif_log):
    result = runner.invoke(app, ["score", str(adif_log), "--contest", "WPX", "--prefix-mults"])
    assert result.exit_code == 0, result.output
    # 3 points (dupe scores zero) x 3 prefixes
    assert "9" in result.output


def test_config_cmd(temp_config):
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0
    assert "POINTS_PER_QSO" in result.output


def test_score_uses_preset_exchange(temp_config, adif_log):
    result = runner.invoke(app, ["score", str(adif_log), "--contest", "CQ WPX", "--mults", "1"])
    assert result.exit_code == 0, result.output


def test_presets(temp_config):
    result = runner.invoke(app, ["presets"])
    assert result.exit_code == 0
    assert "Field Day" in result.output
    assert "Class + Section" in result.output


def test_add_uses_entry_defaults(temp_config, tmp_path):
    temp_config.write_text(
        json.dumps({"DEFAULT_RST": "579", "DEFAULT_MODE": "CW", "MY_GRID": "FN20"}), encoding="utf-8"
    )
    log = tmp_path / "new.adi"
    result = runner.invoke(
        app, ["add", str(log), "w1aw", "--freq", "14.025", "--date", "2024-06-15", "--time", "14:30"]
    )
    assert result.exit_code == 0, result.output

    [q] = read_adif_file(log)
    assert q.call == "W1AW"
    assert q.band == "20m"
    assert q.rst_sent == q.rst_rcvd == "579"
    assert q.my_grid_square == "FN20"
    assert q.date == "2024-06-15"


def test_add_requires_band(temp_config, tmp_path):
    log = tmp_path / "new.adi"
    result = runner.invoke(app, ["add", str(log), "W1AW"])
    assert result.exit_code == 1
    assert not log.exists()


def test_add_refuses_duplicate(temp_config, adif_log):
    result = runner.invoke(app, ["add", str(adif_log), "K2ABC", "--band", "20m"])
    assert result.exit_code == 1
    assert "Duplicate" in result.output
    assert len(read_adif_file(adif_log)) == 4

    temp_config.write_text(json.dumps({"DUPLICATE_CHECK": False}), encoding="utf-8")
    result = runner.invoke(app, ["add", str(adif_log), "K2ABC", "--band", "20m"])
    assert result.exit_code == 0, result.output
    assert len(read_adif_file(adif_log)) == 5


def test_add_bad_time(temp_config, tmp_path):
    result = runner.invoke(app, ["add", str(tmp_path / "x.adi"), "W1AW", "--band", "20m", "--time", "2pm"])
    assert result.exit_code == 1
    assert "Invalid QSO" in result.output


def test_config_set(temp_config):
    result = runner.invoke(app, ["config", "--set", "my_grid=FN31", "--set", "POINTS_PER_QSO=3"])
    assert result.exit_code == 0, result.output
    stored = json.loads(temp_config.read_text(encoding="utf-8"))
    assert stored["MY_GRID"] == "FN31"
    assert stored["POINTS_PER_QSO"] == 3


def test_config_set_rejects_bad_value(temp_config):
    result = runner.invoke(app, ["config", "--set", "POINTS_PER_QSO=lots"])
    assert result.exit_code == 1
    assert not temp_config.exists()

    result = runner.invoke(app, ["config", "--set", "nonsense"])
    assert result.exit_code == 1
