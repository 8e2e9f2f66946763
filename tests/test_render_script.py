import importlib.util
import json
from pathlib import Path

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "render_timeline.py"


def load_script():
    spec = importlib.util.spec_from_file_location("render_timeline", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def write_events(tmp_path):
    path = tmp_path / "intakes.csv"
    path.write_text(
        "id,lane,timestamp,quantity,unit,category\n"
        "a,AH,2025-03-03T08:00:00,40,mg,IM\n"
        "b,AH,2025-03-03T08:05:00,10,mg,IM\n"
        "c,EI,2025-03-04T20:00:00,1,ml,IV\n",
        encoding="utf-8",
    )
    return path


def test_render_writes_json(tmp_path, capsys):
    module = load_script()
    out_path = tmp_path / "out" / "timeline.json"
    code = module.main(
        ["--data", str(write_events(tmp_path)), "--now", "2025-03-05T09:00:00", "--out", str(out_path)]
    )
    assert code == 0
    report = json.loads(out_path.read_text(encoding="utf-8"))
    assert [day["date"] for day in report["days"]] == ["2025-03-05", "2025-03-04", "2025-03-03"]
    ah = report["days"][2]["lanes"][0]
    assert ah["clusters"][0]["key"] == ["a", "b"]
    assert json.loads(capsys.readouterr().out) == report


def test_render_with_expanded_cluster(tmp_path):
    module = load_script()
    out_path = tmp_path / "timeline.json"
    code = module.main(
        [
            "--data", str(write_events(tmp_path)),
            "--now", "2025-03-05T09:00:00",
            "--expand", "b,a",
            "--out", str(out_path),
        ]
    )
    assert code == 0
    report = json.loads(out_path.read_text(encoding="utf-8"))
    ah = report["days"][2]["lanes"][0]
    assert ah["clusters"] == []
    assert [item["event"]["id"] for item in ah["items"]] == ["b", "a"]


def test_render_rejects_unknown_zoom(tmp_path, capsys):
    module = load_script()
    code = module.main(["--data", str(write_events(tmp_path)), "--zoom", "4", "--out", str(tmp_path / "x.json")])
    assert code == 2
    assert "Zoom level" in capsys.readouterr().err
