import pytest


@pytest.fixture
def sample_qso():
    """Create a sample contest QSO for testing."""
    from cw_contest_logger.models import QSO

    return QSO(
        call="K1ABC",
        date="2024-06-15",
        time="14:30",
        band="20m",
        freq_mhz=14.025,
        mode="CW",
        rst_sent="599",
        rst_rcvd="579",
        serial_rcvd="042",
        my_grid_square="FN20",
        grid_square="FN42",
        comment="Test QSO",
    )


@pytest.fixture
def make_qso():
    """Factory for minimal QSOs: make_qso("W1AW", band="40m")."""
    from cw_contest_logger.models import QSO

    def _make(call="W1AW", **kwargs):
        fields = {"date": "2024-06-15", "time": "12:00", "band": "20m"}
        fields.update(kwargs)
        return QSO(call=call, **fields)

    return _make


@pytest.fixture
def temp_config(tmp_path, monkeypatch):
    """Point the settings file at a temporary path (which does not exist yet)."""
    path = tmp_path / "settings.json"
    monkeypatch.setenv("CWCL_CONFIG", str(path))
    return path
