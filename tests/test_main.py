from railway_manager.main import main

TRACK = "10 A REVERSE B REVERSE\n10 B FACING C FACING\n10 A NORMAL C NORMAL\n"


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_cli_prints_kpis_and_grants(tmp_path, capsys):
    track = write(tmp_path, "track.txt", TRACK)
    occ = write(tmp_path, "occ.txt", "10 A REVERSE B REVERSE A REVERSE 0 2\n")
    req = write(tmp_path, "req.txt", "10 A REVERSE B REVERSE A REVERSE 0 10\n10 B FACING C FACING B FACING 0 4\n")
    assert main([track, "--occupied", occ, "--requested", req]) == 0
    out = capsys.readouterr().out
    assert "KPIs:" in out
    assert "'fully_granted': 1" in out
    assert "'end': 4" in out


def test_cli_reports_errors(tmp_path, capsys):
    track = write(tmp_path, "track.txt", TRACK)
    occ = write(tmp_path, "occ.txt", "10 A REVERSE B REVERSE A REVERSE 0 2\n")
    assert main([track, "--occupied", occ, "--requested", occ, occ]) == 1
    assert "invalid_argument" in capsys.readouterr().err

    assert main([track, "--occupied", str(tmp_path / "missing.txt"), "--requested", occ]) == 1
    assert "error (io)" in capsys.readouterr().err

    stray = write(tmp_path, "stray.txt", "5 Q FACING R FACING Q FACING 0 5\n")
    assert main([track, "--occupied", stray, "--requested", stray]) == 1
    assert "invalid_route_request" in capsys.readouterr().err
