from cw_contest_logger.geodesy import bearing_degrees, distance_km
from cw_contest_logger.models import DXSpot, RBNSpot
from cw_contest_logger.spots import locate_spot, parse_dx_line, parse_rbn_line, parse_spot_line

DX_LINE = "DX de W3LPL:     7003.0  JA1ABC       CW up 2                        0430Z"
RBN_LINE = "DX de DL8LAS-#:  14040.0  DF2RG        CW    24 dB  28 WPM  CQ      1150Z"


def test_parse_dx_line():
    spot = parse_dx_line(DX_LINE)
    assert isinstance(spot, DXSpot)
    assert spot.spotter == "W3LPL"
    assert spot.freq_mhz == 7.003
    assert spot.call == "JA1ABC"
    assert spot.band == "40m"
    assert spot.comment == "CW up 2"
    assert spot.time == "0430Z"


def test_parse_dx_line_without_comment():
    spot = parse_dx_line("DX de K1TTT:    14025.0  W1AW         1200Z")
    assert spot is not None
    assert spot.call == "W1AW"
    assert spot.comment == ""
    assert spot.band == "20m"


def test_parse_dx_line_out_of_band():
    spot = parse_dx_line("DX de K1TTT:    5357.0  W1AW   60m FT8   1200Z")
    assert spot is not None
    assert spot.band == ""


def test_parse_rbn_line():
    spot = parse_rbn_line(RBN_LINE)
    assert isinstance(spot, RBNSpot)
    assert spot.spotter == "DL8LAS-#"
    assert spot.freq_mhz == 14.04
    assert spot.call == "DF2RG"
    assert spot.snr == 24
    assert spot.speed == 28
    assert spot.band == "20m"
    assert spot.time == "1150Z"


def test_no_match_returns_none():
    for line in ["", "Hello W3LPL de telnet", "DX de W3LPL: not a spot", "WWV de W0MU <18>:   SFI=150"]:
        assert parse_dx_line(line) is None
        assert parse_rbn_line(line) is None
        assert parse_spot_line(line) is None


def test_rbn_parser_rejects_cluster_line():
    assert parse_rbn_line(DX_LINE) is None


def test_parse_spot_line_picks_format():
    assert isinstance(parse_spot_line(RBN_LINE), RBNSpot)
    assert isinstance(parse_spot_line(DX_LINE), DXSpot)


def test_locate_spot():
    spot = parse_dx_line(DX_LINE)
    located = locate_spot(spot, "FN20", "PM95")
    assert located.latitude == 35.5
    assert located.longitude == 139.0
    assert located.distance == distance_km("FN20", "PM95")
    assert located.bearing == bearing_degrees("FN20", "PM95")
    # The original spot is not modified
    assert spot.latitude is None


def test_locate_spot_without_own_grid():
    spot = parse_rbn_line(RBN_LINE)
    located = locate_spot(spot, None, "JO40")
    assert (located.latitude, located.longitude) == (50.5, 9.0)
    assert located.distance is None
    assert located.bearing is None


def test_locate_spot_bad_grids():
    spot = parse_dx_line(DX_LINE)
    assert locate_spot(spot, "FN20", "ZZ99") is spot
    assert locate_spot(spot, "FN20", None) is spot
    located = locate_spot(spot, "bogus", "PM95")
    assert located.latitude == 35.5
    assert located.distance is None
