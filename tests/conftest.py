"""
Shared fixtures: an isolated artifact root and fake external tools.

The fake replaces ``subprocess.run`` inside ``importer.process`` so no real
curl or osmconvert is ever spawned. curl "downloads" whatever payload was
registered for the URL.
"""
import gzip
import io
import subprocess
import zipfile
from pathlib import Path

import pytest


class FakeTools:
    def __init__(self):
        self.calls = []
        self.payloads = {}
        self.failing = set()
        self.missing = set()

    def __call__(self, cmd, *args, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        tool = cmd[0]
        if tool in self.missing:
            raise FileNotFoundError(2, "No such file or directory", tool)
        if tool == "curl":
            dest = cmd[cmd.index("-o") + 1]
            if tool in self.failing:
                return subprocess.CompletedProcess(cmd, 22)
            Path(dest).write_bytes(self.payloads[cmd[-1]])
        elif tool == "osmconvert":
            out = next(a for a in cmd if a.startswith("-o="))[3:]
            # osmconvert starts writing before it notices a problem
            Path(out).write_bytes(b"<osm>")
            if tool in self.failing:
                return subprocess.CompletedProcess(cmd, 1)
        return subprocess.CompletedProcess(cmd, 0)

    def calls_to(self, tool):
        return [c for c in self.calls if c[0] == tool]


@pytest.fixture
def data_root(tmp_path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("IMPORTER_DATA_DIR", "data")
    monkeypatch.setenv("IMPORTER_FETCH_BACKEND", "curl")
    monkeypatch.delenv("IMPORTER_CITY_MANIFEST_MAPS", raising=False)
    return tmp_path / "data"


@pytest.fixture
def fake_tools(monkeypatch) -> FakeTools:
    tools = FakeTools()
    monkeypatch.setattr("importer.process.subprocess.run", tools)
    return tools


def make_zip(members: dict) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return buf.getvalue()


def make_gzip(content: bytes) -> bytes:
    return gzip.compress(content)


def leftover_temp_files(directory: Path) -> list:
    if not directory.exists():
        return []
    return [p.name for p in directory.rglob("tmp_output*")]


SAMPLE_KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Folder>
      <Placemark>
        <name>A</name>
        <ExtendedData>
          <Data name="kind"><value>stop</value></Data>
        </ExtendedData>
        <Point><coordinates>1.0,1.0,0</coordinates></Point>
      </Placemark>
      <Placemark>
        <name>B</name>
        <ExtendedData>
          <SchemaData schemaUrl="#s">
            <SimpleData name="route">7</SimpleData>
          </SchemaData>
        </ExtendedData>
        <LineString><coordinates>2,2 3,3 4,4</coordinates></LineString>
      </Placemark>
      <Placemark>
        <name>C</name>
        <LineString><coordinates>
          5,5,0
          20,20,0
        </coordinates></LineString>
      </Placemark>
      <Placemark>
        <name>D</name>
        <Point><coordinates>50,50</coordinates></Point>
      </Placemark>
    </Folder>
  </Document>
</kml>
"""
