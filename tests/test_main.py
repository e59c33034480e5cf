"""Tests for the command-line entry point (main.py)."""
import json

import main


def _write_locations(path, locations):
    rows = [{
        "id": l.id,
        "name": l.name,
        "city": l.city,
        "region": l.region,
        "category": l.category,
        "coordinates": l.coordinates.to_dict(),
        "recommended_visit_minutes": l.recommended_visit_minutes,
    } for l in locations]
    path.write_text(json.dumps({"locations": rows}), encoding="utf-8")


class TestMain:

    def test_json_output(self, tmp_path, capsys, kyoto_locations):
        trip = tmp_path / "trip.json"
        trip.write_text(json.dumps({"duration": 2, "cities": ["kyoto"]}), encoding="utf-8")
        locs = tmp_path / "locations.json"
        _write_locations(locs, kyoto_locations)

        rc = main.main(["--trip", str(trip), "--locations", str(locs), "--seed", "1"])

        assert rc == 0
        out = json.loads(capsys.readouterr().out)
        assert len(out["days"]) == 2
        assert out["days"][0]["activities"]

    def test_summary_output(self, tmp_path, capsys):
        trip = tmp_path / "trip.json"
        trip.write_text(json.dumps({"duration": 1, "cities": ["kyoto"]}), encoding="utf-8")
        locs = tmp_path / "locations.json"
        locs.write_text(json.dumps([{
            "id": "x1", "name": "Kiyomizu-dera", "city": "Kyoto", "category": "temple",
            "lat": 34.9949, "lng": 135.7850, "recommendedVisit": {"typicalMinutes": 90},
        }]), encoding="utf-8")

        assert main.main(["--trip", str(trip), "--locations", str(locs), "--summary"]) == 0
        out = capsys.readouterr().out
        assert "ITINERARY: 1 days" in out
        assert "Kiyomizu-dera  90min" in out

    def test_load_locations_accepts_list(self, tmp_path):
        path = tmp_path / "l.json"
        path.write_text(json.dumps([{"id": "a", "name": "Place a", "city": "Kyoto"}]), encoding="utf-8")
        assert [l.id for l in main.load_locations(str(path))] == ["a"]
