import json

from conftest import make_gzip
from importer.cli import main


class TestCli:
    def test_download(self, data_root, fake_tools):
        url = "https://host/blockface.csv"
        fake_tools.payloads[url] = b"x"

        assert main(["download", "input/blockface.csv", url]) == 0
        assert (data_root / "input" / "blockface.csv").exists()

    def test_failure_exit_code(self, data_root, fake_tools, capsys):
        fake_tools.failing.add("curl")

        assert main(["download", "input/blockface.csv", "https://host/blockface.csv"]) == 1
        assert "curl" in capsys.readouterr().out

    def test_batch_stops_at_first_failure(self, data_root, fake_tools, tmp_path):
        ok_url = "https://host/seattle.osm.gz"
        fake_tools.payloads[ok_url] = make_gzip(b"<osm/>")
        manifest = tmp_path / "steps.json"
        manifest.write_text(
            json.dumps(
                [
                    {"op": "download", "output": "input/seattle.osm", "url": ok_url},
                    {"op": "clip", "input": "input/seattle.osm", "poly": "seattle.poly", "output": "input/montlake.osm"},
                    {"op": "download", "output": "input/never.csv", "url": "https://host/never.csv"},
                ]
            )
        )
        fake_tools.failing.add("osmconvert")

        assert main(["batch", str(manifest)]) == 1

        assert (data_root / "input" / "seattle.osm").exists()
        assert not (data_root / "input" / "montlake.osm").exists()
        assert [c[-1] for c in fake_tools.calls_to("curl")] == [ok_url]

    def test_unknown_batch_op(self, data_root, fake_tools, tmp_path):
        manifest = tmp_path / "steps.json"
        manifest.write_text(json.dumps([{"op": "teleport"}]))

        assert main(["batch", str(manifest)]) == 1
